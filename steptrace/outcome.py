"""
outcome.py

Result values returned by the safe wrappers instead of raising.

Discriminate on ``ok``::

    outcome = await trace_safe(capability=chars, text="ab", config={})
    if outcome.ok:
        print(outcome.steps)
    else:
        print(outcome.failure.format_full())
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional, Sequence, Union

from steptrace.configuring import ResolvedConfig
from steptrace.errors import TraceError


class _Missing:
    """Marks a keyword argument the caller did not pass."""

    __slots__ = ()

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING: Any = _Missing()


@dataclass(frozen=True)
class TraceSuccess:
    """A completed trace. Every field is populated."""
    steps: Sequence[Any]
    capability: Any
    text: str
    config: Optional[Mapping]
    resolved_config: ResolvedConfig
    ok: bool = field(default=True, init=False)


@dataclass(frozen=True)
class TraceFailure:
    """A failed trace. ``failure`` is always a TraceError."""
    failure: TraceError
    capability: Any
    text: Any
    config: Any
    ok: bool = field(default=False, init=False)


Outcome = Union[TraceSuccess, TraceFailure]
