"""
safe_chain.py

SafeTraceChain: immutable chainable tracing that never raises.

Accumulate state with .set(), run with ``await chain.trace()``. Both return a
NEW chain; the receiver is never modified. Failures land in ``.failure`` with
``.ok`` set to False.

Example::

    chain = await safe_chain(capability=chars).set(text="hello").trace()
    if chain.ok:
        print(chain.steps)

    # Re-trace with new text; ``chain`` itself is unaffected
    again = await chain.set(text="world").trace()
"""

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any, Optional, Sequence

from steptrace.capability import (
    capability_field,
    keeps_text,
    record_steps,
    validate_capability,
    verify_options,
)
from steptrace.configuring import ResolvedConfig, resolve_config
from steptrace.direct import check_config, check_text
from steptrace.errors import ArgumentInvalidError, TraceError, as_trace_error
from steptrace.immutable import ImmutabilityError, deep_equal
from steptrace.outcome import MISSING
from steptrace.safe import freeze_input, is_settled, settle_input

logger = logging.getLogger(__name__)


class ChainPhase(Enum):
    """Where a SafeTraceChain stands."""
    EMPTY = "empty"
    PARTIAL = "partial"
    RESOLVED = "resolved"
    COMPLETED = "completed"
    FAILED = "failed"


def _identity(capability: Any) -> Optional[str]:
    return capability_field(capability, "identity") if capability is not None else None


def _same_config(new: Any, old: Any) -> bool:
    # Configs left unfrozen by freeze_input never match, so they always re-resolve.
    return is_settled(new) and is_settled(old) and deep_equal(new, old)


class SafeTraceChain:
    """
    Immutable chain state for the non-raising builder API.

    All fields are plain stored values; reading any of them never triggers
    work. ``resolved_config`` and ``steps`` are filled by .trace() and carried
    across .set() calls that do not invalidate them.
    """

    __slots__ = (
        '_capability', '_text', '_config',
        '_resolved_config', '_steps', '_ok', '_failure',
    )

    def __init__(
        self,
        *,
        capability: Any = None,
        text: Optional[str] = None,
        config: Optional[Mapping] = None,
        resolved_config: Optional[ResolvedConfig] = None,
        steps: Optional[Sequence[Any]] = None,
        ok: bool = True,
        failure: Optional[TraceError] = None,
    ):
        object.__setattr__(self, '_capability', capability)
        object.__setattr__(self, '_text', text)
        object.__setattr__(self, '_config', config)
        object.__setattr__(self, '_resolved_config', resolved_config)
        object.__setattr__(self, '_steps', steps)
        object.__setattr__(self, '_ok', ok)
        object.__setattr__(self, '_failure', failure)

    def __setattr__(self, name: str, value: Any) -> None:
        raise ImmutabilityError(f"set attribute '{name}'", "SafeTraceChain")

    def __delattr__(self, name: str) -> None:
        raise ImmutabilityError(f"delete attribute '{name}'", "SafeTraceChain")

    # -------------------------------------------------------------------------
    # Properties
    # -------------------------------------------------------------------------

    @property
    def capability(self) -> Any:
        return self._capability

    @property
    def text(self) -> Optional[str]:
        return self._text

    @property
    def config(self) -> Optional[Mapping]:
        return self._config

    @property
    def resolved_config(self) -> Optional[ResolvedConfig]:
        return self._resolved_config

    @property
    def steps(self) -> Optional[Sequence[Any]]:
        return self._steps

    @property
    def ok(self) -> bool:
        return self._ok

    @property
    def failure(self) -> Optional[TraceError]:
        return self._failure

    @property
    def phase(self) -> ChainPhase:
        if not self._ok:
            return ChainPhase.FAILED
        if self._steps is not None:
            return ChainPhase.COMPLETED
        if self._resolved_config is not None:
            return ChainPhase.RESOLVED
        if self._capability is None and self._text is None and self._config is None:
            return ChainPhase.EMPTY
        return ChainPhase.PARTIAL

    # -------------------------------------------------------------------------
    # Transitions
    # -------------------------------------------------------------------------

    def set(
        self,
        *,
        capability: Any = MISSING,
        text: Any = MISSING,
        config: Any = MISSING,
    ) -> "SafeTraceChain":
        """
        Return a new chain with the given fields replaced.

        Invalidation rules:
        - a capability with a different identity clears the resolved config
          and steps, and clears text unless the domains are compatible
        - passing a capability without a config clears the config
        - new text clears the steps
        - a config that is not structurally equal to the current one clears
          the resolved config and steps
        """
        new_capability = self._capability if capability is MISSING else capability
        capability_changed = (
            capability is not MISSING and _identity(capability) != _identity(self._capability)
        )

        new_text = self._text if text is MISSING else text
        if capability_changed and text is MISSING and new_capability is not None:
            if not keeps_text(self._capability, new_capability):
                new_text = None

        if config is not MISSING:
            new_config = freeze_input(config)
        elif capability is not MISSING:
            new_config = None
        else:
            new_config = self._config

        config_changed = not _same_config(new_config, self._config)
        text_changed = new_text != self._text

        return SafeTraceChain(
            capability=new_capability,
            text=new_text,
            config=new_config,
            resolved_config=(
                None if capability_changed or config_changed else self._resolved_config
            ),
            steps=(
                None if capability_changed or config_changed or text_changed else self._steps
            ),
            ok=True,
            failure=None,
        )

    async def trace(
        self,
        *,
        capability: Any = MISSING,
        text: Any = MISSING,
        config: Any = MISSING,
    ) -> "SafeTraceChain":
        """
        Trace with the chain's state, optionally overriding fields for this
        call. Returns a new chain holding the outcome. Never raises.
        """
        capability = self._capability if capability is MISSING else capability
        text = self._text if text is MISSING else text
        config = self._config if config is MISSING else freeze_input(config)

        if capability is None:
            return self._failed(
                capability, text, config,
                ArgumentInvalidError("capability", "safe_chain.trace(): a capability is required"),
            )
        if text is None:
            return self._failed(
                capability, text, config,
                ArgumentInvalidError("text", "safe_chain.trace(): text is required"),
            )

        try:
            config = settle_input(config)
            validate_capability(capability)
            check_text(text, "safe_chain.trace()")
            check_config(config, "safe_chain.trace()")

            capability_changed = _identity(capability) != _identity(self._capability)
            config_changed = not _same_config(config, self._config)

            reuse = (
                self._resolved_config is not None
                and not capability_changed
                and not config_changed
            )
            if reuse:
                logger.debug("safe_chain: reusing resolved config")
                resolved_config = self._resolved_config
            else:
                resolved_config = resolve_config(capability, config)

            verify_options(capability, resolved_config)
            steps = await record_steps(capability, text, resolved_config)
        except Exception as error:
            return self._failed(capability, text, config, as_trace_error(error))

        return SafeTraceChain(
            capability=capability,
            text=text,
            config=config,
            resolved_config=resolved_config,
            steps=steps,
            ok=True,
            failure=None,
        )

    @staticmethod
    def _failed(capability: Any, text: Any, config: Any, failure: TraceError) -> "SafeTraceChain":
        logger.debug(
            "safe_chain captured %s [%s]", type(failure).__name__, failure.error_code,
        )
        return SafeTraceChain(
            capability=capability,
            text=text,
            config=config,
            ok=False,
            failure=failure,
        )

    def __repr__(self) -> str:
        return (
            f"SafeTraceChain(capability={_identity(self._capability)!r}, "
            f"text={self._text!r}, phase={self.phase.value})"
        )


def safe_chain(
    *,
    capability: Any = None,
    text: Optional[str] = None,
    config: Optional[Mapping] = None,
) -> SafeTraceChain:
    """
    Create a SafeTraceChain with optional initial state.

    Nothing is validated here; .trace() does all validation and reports
    problems as a failed chain.
    """
    return SafeTraceChain(
        capability=capability,
        text=text,
        config=freeze_input(config),
    )
