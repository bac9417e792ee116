"""
steptrace — Tracing API Layer
=============================

steptrace wraps a single *capability* (an object whose ``execute`` function
turns source text into a sequence of steps) in four call conventions:

- ``trace``: positional arguments, raises on error, curryable
- ``trace_chain``: chainable builder, raises on error, memoized
- ``trace_safe``: keyword arguments with partial application, never raises
- ``safe_chain``: immutable chainable builder, never raises

All four validate the capability, resolve configuration through the same
expand -> fill defaults -> validate pipeline, and hand back deeply frozen
data.

What's Public
-------------
Everything exported in ``__all__`` is public:

- **Entry point**: tracing, Tracing
- **Wrappers**: trace, trace_chain, TraceChain, trace_safe, PartialTrace,
  safe_chain, SafeTraceChain, ChainPhase
- **Values**: Capability, ResolvedConfig, TraceSuccess, TraceFailure,
  LIMITS_SCHEMA
- **Configuration pipeline**: expand_shorthand, fill_defaults,
  validate_config, prepare_config, resolve_config
- **Exceptions**: TraceError and every subclass

Example
-------
::

    from steptrace import tracing

    api = tracing(my_capability)

    steps = await api.trace("hello")
    outcome = await api.safe(text="hello", config={})
    if outcome.ok:
        print(outcome.steps)
"""

__version__ = "1.0.0"

# =============================================================================
# PUBLIC API
# =============================================================================

__all__ = [
    # --- Package Metadata ---
    "__version__",

    # --- Entry Point ---
    "tracing",
    "Tracing",

    # --- Wrappers ---
    "trace",
    "trace_chain",
    "TraceChain",
    "ChainState",
    "trace_safe",
    "PartialTrace",
    "safe_chain",
    "SafeTraceChain",
    "ChainPhase",
    "MISSING",

    # --- Values ---
    "Capability",
    "ResolvedConfig",
    "TraceSuccess",
    "TraceFailure",
    "Outcome",
    "LIMITS_SCHEMA",

    # --- Capability Contract ---
    "validate_capability",
    "domains_compatible",

    # --- Configuration Pipeline ---
    "expand_shorthand",
    "fill_defaults",
    "validate_config",
    "prepare_config",
    "resolve_config",

    # --- Immutability ---
    "FrozenDict",
    "FrozenList",
    "ImmutabilityError",
    "deep_clone",
    "deep_equal",
    "deep_freeze",
    "deep_freeze_in_place",
    "is_frozen",

    # --- Errors ---
    "SourceLocation",
    "TraceError",
    "CapabilityInvalidError",
    "ArgumentInvalidError",
    "OptionsInvalidError",
    "OptionsSemanticInvalidError",
    "ParseError",
    "ExecutionError",
    "LimitExceededError",
    "InternalError",
    "format_error",
]

# =============================================================================
# IMPORTS
# =============================================================================

from steptrace.capability import (
    Capability,
    domains_compatible,
    validate_capability,
)
from steptrace.chain import (
    ChainState,
    TraceChain,
    trace_chain,
)
from steptrace.configuring import (
    LIMITS_SCHEMA,
    ResolvedConfig,
    expand_shorthand,
    fill_defaults,
    prepare_config,
    resolve_config,
    validate_config,
)
from steptrace.direct import trace
from steptrace.errors import (
    ArgumentInvalidError,
    CapabilityInvalidError,
    ExecutionError,
    InternalError,
    LimitExceededError,
    OptionsInvalidError,
    OptionsSemanticInvalidError,
    ParseError,
    SourceLocation,
    TraceError,
    format_error,
)
from steptrace.immutable import (
    FrozenDict,
    FrozenList,
    ImmutabilityError,
    deep_clone,
    deep_equal,
    deep_freeze,
    deep_freeze_in_place,
    is_frozen,
)
from steptrace.outcome import (
    MISSING,
    Outcome,
    TraceFailure,
    TraceSuccess,
)
from steptrace.safe import (
    PartialTrace,
    trace_safe,
)
from steptrace.safe_chain import (
    ChainPhase,
    SafeTraceChain,
    safe_chain,
)
from steptrace.tracing import (
    Tracing,
    tracing,
)
