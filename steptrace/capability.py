"""
capability.py

The capability contract and the boundary where steptrace calls into it.

A capability is the external object that actually traces text. steptrace
never inspects how it works; it only checks its shape:

- identity: non-empty string, also the cache-invalidation key in chains
- domains: sequence of domain tags, e.g. ("js", "mjs"); empty = universal
- execute(text, resolved_config): returns the step sequence (awaitable)
- options_schema: optional JSON Schema for capability-specific options
- semantic_validator(options): optional cross-field check, raises on failure

Any mapping or object with those fields is accepted. Capability is a
ready-made frozen record for callers who want one.
"""

import inspect
import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional, Sequence, Tuple

from steptrace.errors import CapabilityInvalidError
from steptrace.immutable import deep_freeze, is_frozen

logger = logging.getLogger(__name__)

_NON_RECORD_TYPES = (
    type(None), bool, int, float, complex, str, bytes, bytearray,
    list, tuple, set, frozenset,
)


@dataclass(frozen=True)
class Capability:
    """
    Immutable capability record.

    ``domains`` is stored as a tuple and ``options_schema`` as a deep-frozen
    copy, so the record cannot drift after it is validated.
    """
    identity: str
    domains: Sequence[str]
    execute: Callable[..., Awaitable[Sequence[Any]]]
    options_schema: Optional[Mapping] = None
    semantic_validator: Optional[Callable[[Mapping], None]] = None

    def __post_init__(self) -> None:
        if isinstance(self.domains, list):
            object.__setattr__(self, 'domains', tuple(self.domains))
        if isinstance(self.options_schema, Mapping):
            object.__setattr__(self, 'options_schema', deep_freeze(self.options_schema))


def capability_field(capability: Any, name: str) -> Any:
    """Read a contract field from a mapping or an attribute-style record."""
    if isinstance(capability, Mapping):
        return capability.get(name)
    return getattr(capability, name, None)


def _is_record(value: Any) -> bool:
    if isinstance(value, Mapping):
        return True
    return not isinstance(value, _NON_RECORD_TYPES) and not isinstance(value, type)


# =============================================================================
# Validation
# =============================================================================

def validate_capability(capability: Any) -> None:
    """
    Assert that ``capability`` satisfies the capability contract.

    Collects all violations before raising so callers see every problem at
    once. Validates shape only; whether the capability traces correctly is
    its author's responsibility.

    Raises:
        CapabilityInvalidError: listing every violation found
    """
    if not _is_record(capability):
        logger.debug("capability rejected: not a record (%s)", type(capability).__name__)
        raise CapabilityInvalidError([
            "capability must be a mapping or an object with attributes"
        ])

    violations = []

    identity = capability_field(capability, "identity")
    if not isinstance(identity, str) or not identity.strip():
        violations.append("identity must be a non-empty string")

    domains = capability_field(capability, "domains")
    if not isinstance(domains, (list, tuple)) or not all(isinstance(d, str) for d in domains):
        violations.append(
            "domains must be a list or tuple of strings "
            "(use an empty sequence for universal capabilities)"
        )

    if not callable(capability_field(capability, "execute")):
        violations.append("execute must be callable")

    options_schema = capability_field(capability, "options_schema")
    if options_schema is not None and not isinstance(options_schema, Mapping):
        violations.append("options_schema must be a mapping if provided")

    semantic_validator = capability_field(capability, "semantic_validator")
    if semantic_validator is not None and not callable(semantic_validator):
        violations.append("semantic_validator must be callable if provided")

    if violations:
        logger.debug("capability rejected with %d violation(s)", len(violations))
        raise CapabilityInvalidError(violations)


# =============================================================================
# Compatibility
# =============================================================================

def capability_domains(capability: Any) -> Tuple[str, ...]:
    domains = capability_field(capability, "domains")
    if isinstance(domains, (list, tuple)):
        return tuple(domains)
    return ()


def domains_compatible(old: Sequence[str], new: Sequence[str]) -> bool:
    """True when either side is universal or the domain sets intersect."""
    if not old or not new:
        return True
    return bool(set(old) & set(new))


def keeps_text(old: Any, new: Any) -> bool:
    """
    Decide whether text accumulated for ``old`` survives a switch to ``new``.

    Text is kept when there was no previous capability, when both share an
    identity, or when their domains are compatible.
    """
    if old is None:
        return True
    if capability_field(old, "identity") == capability_field(new, "identity"):
        return True
    return domains_compatible(capability_domains(old), capability_domains(new))


# =============================================================================
# Invocation
# =============================================================================

def verify_options(capability: Any, resolved_config: Any) -> None:
    """Run the capability's semantic validator, if it declares one."""
    semantic_validator = capability_field(capability, "semantic_validator")
    if semantic_validator is not None:
        semantic_validator(resolved_config.options)


async def record_steps(capability: Any, text: str, resolved_config: Any) -> Sequence[Any]:
    """
    Call the capability's execute function and freeze what it returns.

    The step objects belong to the capability, so they are cloned before
    freezing; dataclass records come back as frozen mappings of their
    fields. A non-awaitable return value is accepted as already resolved.

    Raises:
        CapabilityInvalidError: a step holds something that cannot be frozen
    """
    identity = capability_field(capability, "identity")
    logger.debug("tracing %d character(s) with capability %r", len(text), identity)

    steps = capability_field(capability, "execute")(text, resolved_config)
    if inspect.isawaitable(steps):
        steps = await steps

    steps = list(steps)
    frozen = deep_freeze(steps)
    for index, step in enumerate(frozen):
        if not is_frozen(step):
            raise CapabilityInvalidError([
                f"execute returned step {index} containing a mutable "
                f"{type(steps[index]).__name__} that cannot be frozen"
            ])
    logger.debug("capability %r produced %d step(s)", identity, len(frozen))
    return frozen
