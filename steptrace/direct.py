"""
direct.py

trace(): positional arguments, raises on error.

Curryable: trace(capability) returns a pre-bound ``(text, config=None)``
function. Everything up to and including the semantic validator runs
synchronously, so errors raise at the call site; only the capability's
execute is awaited.

Example::

    steps = await trace(capability, "hello")

    trace_with = trace(capability)
    steps = await trace_with("world", {"options": {"direction": "rl"}})
"""

from collections.abc import Mapping
from typing import Any, Awaitable, Callable, Optional, Sequence, Union

from steptrace.capability import record_steps, validate_capability, verify_options
from steptrace.configuring import resolve_config
from steptrace.errors import ArgumentInvalidError

StepsAwaitable = Awaitable[Sequence[Any]]


def check_text(text: Any, where: str) -> None:
    if not isinstance(text, str):
        raise ArgumentInvalidError(
            "text",
            f"{where}: expected text to be a string, got {type(text).__name__}",
        )


def check_config(config: Any, where: str) -> None:
    if config is not None and not isinstance(config, Mapping):
        raise ArgumentInvalidError(
            "config",
            f"{where}: expected config to be a mapping, got {type(config).__name__}",
        )


def trace(
    capability: Any,
    text: Optional[str] = None,
    config: Optional[Mapping] = None,
) -> Union[StepsAwaitable, Callable[..., StepsAwaitable]]:
    """
    Trace ``text`` with ``capability``.

    Args:
        capability: A valid capability
        text: Source text to trace; omit it to get a pre-bound function
        config: Optional ``{"limits": ..., "options": ...}`` mapping

    Returns:
        An awaitable resolving to the frozen step sequence, or a function
        ``(text, config=None)`` when ``text`` is omitted.

    Raises (synchronously):
        CapabilityInvalidError: the capability breaks the contract
        ArgumentInvalidError: ``text`` is not a string or ``config`` not a mapping
        OptionsInvalidError: limits or options fail schema validation
        OptionsSemanticInvalidError: the semantic validator rejects the options
    """
    validate_capability(capability)

    if text is None:
        def trace_with(text: str, config: Optional[Mapping] = None) -> StepsAwaitable:
            return _trace_with(capability, text, config)
        return trace_with

    return _trace_with(capability, text, config)


def _trace_with(capability: Any, text: Any, config: Any) -> StepsAwaitable:
    check_text(text, "trace")
    check_config(config, "trace")

    resolved_config = resolve_config(capability, config)
    verify_options(capability, resolved_config)

    return record_steps(capability, text, resolved_config)
