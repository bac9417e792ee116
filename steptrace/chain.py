"""
chain.py

TraceChain: chainable tracing that raises on errors.

Build state with .capability(), .text() and .config(), then read
.resolved_config (sync) or await .result. Every setter returns a new chain;
a chain never changes after construction.

Each chain memoizes its own resolved config and result, so reading them
twice returns the same frozen object without recomputing. The memo is never
carried into the chains a setter returns.

Example::

    steps = await trace_chain.capability(chars).text("hello").result
"""

import asyncio
import logging
from collections.abc import Mapping
from functools import partial
from typing import Any, Awaitable, Callable, Generator, NamedTuple, Optional

from steptrace.capability import (
    capability_field,
    keeps_text,
    record_steps,
    validate_capability,
    verify_options,
)
from steptrace.configuring import ResolvedConfig, resolve_config
from steptrace.direct import check_config
from steptrace.errors import ArgumentInvalidError
from steptrace.immutable import ImmutabilityError, deep_freeze

logger = logging.getLogger(__name__)


class ChainState(NamedTuple):
    """Snapshot of the inputs a TraceChain holds."""
    capability: Any
    text: Optional[str]
    config: Optional[Mapping]


class SharedResult:
    """
    An awaitable that runs a coroutine at most once.

    Any number of awaits, sequential or concurrent, receive the same result
    (or the same exception). ``factory`` is called on the first await, so an
    instance that is never awaited never creates a coroutine.
    """

    __slots__ = ('_factory', '_future')

    def __init__(self, factory: Callable[[], Awaitable[Any]]):
        self._factory = factory
        self._future: Optional[asyncio.Future] = None

    def __await__(self) -> Generator[Any, None, Any]:
        if self._future is None:
            self._future = asyncio.ensure_future(self._factory())
        if self._future.done():
            return self._future.result()
        return (yield from self._future.__await__())


class TraceChain:
    """
    Immutable builder for the raising tracing API.

    Invalidation rules:
    - .capability() always clears config; it clears text too unless the new
      capability shares the old one's identity or their domains are
      compatible
    - .text() clears only the cached result
    - .config() clears the cached resolved config and result
    """

    __slots__ = ('_capability', '_text', '_config', '_resolved_config', '_result')

    def __init__(
        self,
        *,
        capability: Any = None,
        text: Optional[str] = None,
        config: Optional[Mapping] = None,
    ):
        object.__setattr__(self, '_capability', capability)
        object.__setattr__(self, '_text', text)
        object.__setattr__(self, '_config', config)
        object.__setattr__(self, '_resolved_config', None)
        object.__setattr__(self, '_result', None)

    def __setattr__(self, name: str, value: Any) -> None:
        raise ImmutabilityError(f"set attribute '{name}'", "TraceChain")

    def __delattr__(self, name: str) -> None:
        raise ImmutabilityError(f"delete attribute '{name}'", "TraceChain")

    # -------------------------------------------------------------------------
    # Setters
    # -------------------------------------------------------------------------

    def capability(self, capability: Any) -> "TraceChain":
        """
        Return a new chain using ``capability``.

        Raises:
            CapabilityInvalidError: the capability breaks the contract
        """
        validate_capability(capability)
        keep = keeps_text(self._capability, capability)
        if not keep:
            logger.debug(
                "capability %r is incompatible with %r; dropping text",
                capability_field(capability, "identity"),
                capability_field(self._capability, "identity"),
            )
        return TraceChain(
            capability=capability,
            text=self._text if keep else None,
            config=None,
        )

    def text(self, text: str) -> "TraceChain":
        """
        Return a new chain tracing ``text``.

        Raises:
            ArgumentInvalidError: ``text`` is not a non-empty string
        """
        if not isinstance(text, str):
            raise ArgumentInvalidError(
                "text",
                f"trace_chain.text(): expected a string, got {type(text).__name__}",
            )
        if text == "":
            raise ArgumentInvalidError("text", "trace_chain.text(): expected a non-empty string")
        return TraceChain(capability=self._capability, text=text, config=self._config)

    def config(self, config: Optional[Mapping]) -> "TraceChain":
        """
        Return a new chain with ``config``.

        The mapping is cloned and frozen; later changes by the caller do not
        leak into the chain.

        Raises:
            ArgumentInvalidError: ``config`` is not a mapping
        """
        check_config(config, "trace_chain.config()")
        return TraceChain(
            capability=self._capability,
            text=self._text,
            config=deep_freeze(config if config is not None else {}),
        )

    # -------------------------------------------------------------------------
    # Getters
    # -------------------------------------------------------------------------

    @property
    def state(self) -> ChainState:
        """The capability, text and config this chain holds."""
        return ChainState(self._capability, self._text, self._config)

    @property
    def resolved_config(self) -> ResolvedConfig:
        """
        Resolve the config without tracing. Memoized per chain.

        Raises:
            ArgumentInvalidError: no capability set
            OptionsInvalidError: limits or options fail schema validation
            OptionsSemanticInvalidError: the semantic validator rejects the options
        """
        if self._resolved_config is not None:
            return self._resolved_config

        if self._capability is None:
            raise ArgumentInvalidError(
                "capability",
                "trace_chain: a capability is required to resolve the config",
            )

        resolved_config = resolve_config(self._capability, self._config)
        verify_options(self._capability, resolved_config)
        object.__setattr__(self, '_resolved_config', resolved_config)
        return resolved_config

    @property
    def result(self) -> SharedResult:
        """
        Trace and return an awaitable resolving to the frozen steps.

        Memoized per chain: execute runs at most once, and every access
        returns the same awaitable.

        Raises (synchronously):
            ArgumentInvalidError: capability or text not set
            OptionsInvalidError: limits or options fail schema validation
            OptionsSemanticInvalidError: the semantic validator rejects the options
        """
        if self._result is not None:
            logger.debug("trace_chain: returning memoized result")
            return self._result

        if self._capability is None:
            raise ArgumentInvalidError(
                "capability",
                "trace_chain: a capability is required to trace",
            )
        if self._text is None:
            raise ArgumentInvalidError("text", "trace_chain: text is required to trace")

        resolved_config = self.resolved_config
        result = SharedResult(
            partial(record_steps, self._capability, self._text, resolved_config)
        )
        object.__setattr__(self, '_result', result)
        return result

    def __repr__(self) -> str:
        identity = capability_field(self._capability, "identity") if self._capability else None
        return f"TraceChain(capability={identity!r}, text={self._text!r})"


trace_chain = TraceChain()
"""Empty pre-built chain; start here with ``.capability(...)``."""

