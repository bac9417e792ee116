"""
safe.py

trace_safe(): keyword arguments, partial application, never raises.

With capability, text and config all given, trace_safe returns an awaitable
resolving to a TraceSuccess or TraceFailure. With any of them missing it
returns a PartialTrace: call it with the remaining fields, or read its
properties to see what has been accumulated so far.

``config=None`` counts as given ("use defaults"); leaving it out does not.

Example::

    outcome = await trace_safe(capability=chars, text="ab", config={})

    with_chars = trace_safe(capability=chars)
    outcome = await with_chars(text="ab", config={})
"""

import logging
from typing import Any, Awaitable, Optional, Union

from steptrace.capability import (
    capability_field,
    record_steps,
    validate_capability,
    verify_options,
)
from steptrace.configuring import resolve_config
from steptrace.direct import check_config, check_text
from steptrace.errors import as_trace_error
from steptrace.immutable import FrozenDict, ImmutabilityError, deep_freeze
from steptrace.outcome import MISSING, Outcome, TraceFailure, TraceSuccess

logger = logging.getLogger(__name__)


def freeze_input(config: Any) -> Any:
    """
    Clone and freeze caller config at call time.

    Later caller mutation cannot reach the outcome. If the config cannot be
    cloned it is returned as given, and settle_input retries inside the
    guarded path so the error is reported as a failure.
    """
    if config is MISSING or config is None:
        return config
    try:
        return deep_freeze(config)
    except Exception as error:
        logger.debug("config could not be frozen at call time: %s", type(error).__name__)
        return config


def is_settled(config: Any) -> bool:
    """True for configs freeze_input managed to freeze (or None)."""
    return config is None or (isinstance(config, FrozenDict) and config.frozen)


def settle_input(config: Any) -> Any:
    return config if is_settled(config) else deep_freeze(config)


async def execute_safely(capability: Any, text: Any, config: Any) -> Outcome:
    """
    Run a full trace and capture any failure as a TraceFailure.

    Errors outside the taxonomy are wrapped in InternalError with the
    original exception as ``__cause__``.
    """
    try:
        config = settle_input(config)
        validate_capability(capability)
        check_text(text, "trace_safe")
        check_config(config, "trace_safe")

        resolved_config = resolve_config(capability, config)
        verify_options(capability, resolved_config)
        steps = await record_steps(capability, text, resolved_config)
    except Exception as error:
        failure = as_trace_error(error)
        logger.debug(
            "trace_safe captured %s [%s] for capability %r",
            type(failure).__name__,
            failure.error_code,
            capability_field(capability, "identity") if capability is not None else None,
        )
        return TraceFailure(failure=failure, capability=capability, text=text, config=config)

    return TraceSuccess(
        steps=steps,
        capability=capability,
        text=text,
        config=config,
        resolved_config=resolved_config,
    )


class PartialTrace:
    """
    Accumulated trace_safe arguments awaiting the rest.

    Calling it never mutates it: each call returns either the awaitable
    outcome or a new PartialTrace.
    """

    __slots__ = ('_capability', '_text', '_config')

    def __init__(self, capability: Any = MISSING, text: Any = MISSING, config: Any = MISSING):
        object.__setattr__(self, '_capability', capability)
        object.__setattr__(self, '_text', text)
        object.__setattr__(self, '_config', config)

    def __setattr__(self, name: str, value: Any) -> None:
        raise ImmutabilityError(f"set attribute '{name}'", "PartialTrace")

    def __delattr__(self, name: str) -> None:
        raise ImmutabilityError(f"delete attribute '{name}'", "PartialTrace")

    def __call__(
        self,
        *,
        capability: Any = MISSING,
        text: Any = MISSING,
        config: Any = MISSING,
    ) -> Union[Awaitable[Outcome], "PartialTrace"]:
        return _dispatch(
            self._capability if capability is MISSING else capability,
            self._text if text is MISSING else text,
            self._config if config is MISSING else freeze_input(config),
        )

    # -------------------------------------------------------------------------
    # Accumulated state
    # -------------------------------------------------------------------------

    @property
    def capability(self) -> Any:
        return None if self._capability is MISSING else self._capability

    @property
    def text(self) -> Optional[str]:
        return None if self._text is MISSING else self._text

    @property
    def config(self) -> Any:
        return None if self._config is MISSING else self._config

    @property
    def missing(self) -> tuple:
        """Names of the fields still needed before tracing runs."""
        return tuple(
            name for name, value in (
                ("capability", self._capability),
                ("text", self._text),
                ("config", self._config),
            ) if value is MISSING
        )

    @property
    def ok(self) -> bool:
        return True

    @property
    def failure(self) -> None:
        return None

    @property
    def steps(self) -> None:
        return None

    def __repr__(self) -> str:
        return f"PartialTrace(missing={self.missing!r})"


def _dispatch(capability: Any, text: Any, config: Any) -> Union[Awaitable[Outcome], PartialTrace]:
    if capability is not MISSING and text is not MISSING and config is not MISSING:
        return execute_safely(capability, text, config)
    return PartialTrace(capability, text, config)


def trace_safe(
    *,
    capability: Any = MISSING,
    text: Any = MISSING,
    config: Any = MISSING,
) -> Union[Awaitable[Outcome], PartialTrace]:
    """
    Safe tracing with partial application. Never raises.

    Args:
        capability: A valid capability
        text: Source text to trace
        config: ``{"limits": ..., "options": ...}`` mapping, or None for defaults

    Returns:
        An awaitable resolving to TraceSuccess / TraceFailure when all three
        fields are given, otherwise a PartialTrace.
    """
    return _dispatch(capability, text, freeze_input(config))
