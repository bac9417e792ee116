"""
tracing.py

tracing(capability): validate once, get all four APIs pre-bound.
"""

import logging
from dataclasses import dataclass
from typing import Any, Callable

from steptrace.capability import capability_field, validate_capability
from steptrace.chain import TraceChain, trace_chain
from steptrace.direct import trace
from steptrace.safe import PartialTrace, trace_safe
from steptrace.safe_chain import SafeTraceChain, safe_chain

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Tracing:
    """
    The four tracing APIs bound to one capability.

    - trace(text, config=None): positional, raises
    - chain: TraceChain with the capability set, raises
    - safe(text=, config=): PartialTrace with the capability set, never raises
    - safe_chain: SafeTraceChain with the capability set, never raises
    """
    capability: Any
    trace: Callable[..., Any]
    chain: TraceChain
    safe: PartialTrace
    safe_chain: SafeTraceChain


def tracing(capability: Any) -> Tracing:
    """
    Validate ``capability`` and return every API pre-bound to it.

    The bundle is never returned in an invalid state: an invalid capability
    raises before any wrapper is built.

    Raises:
        CapabilityInvalidError: listing every contract violation

    Example::

        api = tracing(chars)
        steps = await api.trace("hello")
        outcome = await api.safe(text="hello", config={})
    """
    validate_capability(capability)
    logger.debug("binding tracing APIs to capability %r", capability_field(capability, "identity"))

    return Tracing(
        capability=capability,
        trace=trace(capability),
        chain=trace_chain.capability(capability),
        safe=trace_safe(capability=capability),
        safe_chain=safe_chain(capability=capability),
    )
