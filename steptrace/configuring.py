"""
configuring.py

Schema-driven configuration resolution.

Every piece of configuration goes through the same three pure stages, in a
fixed order because each stage relies on the previous one:

1. expand_shorthand: ``{"debug": True}`` becomes ``{"debug": {"ast": True}}``
   when the schema says ``debug`` is an object of booleans
2. fill_defaults: inject schema defaults, coerce unambiguous type mismatches
   and drop undeclared properties
3. validate_config: check the result with jsonschema, reporting every
   violation at once

The stages know nothing about capabilities or about which half of the
configuration (limits or options) they are resolving. resolve_config is the
only place that does.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, List, Optional

from jsonschema import Draft7Validator

from steptrace.capability import capability_field
from steptrace.errors import OptionsInvalidError
from steptrace.immutable import FrozenDict, deep_clone, deep_freeze, deep_freeze_in_place

logger = logging.getLogger(__name__)


# =============================================================================
# Limits Schema
# =============================================================================

def _limit(description: str) -> dict:
    return {
        "type": ["integer", "null"],
        "minimum": 1,
        "default": None,
        "description": description,
    }


LIMITS_SCHEMA = deep_freeze({
    "$schema": "http://json-schema.org/draft-07/schema#",
    "title": "steptrace limits",
    "description": "Cross-capability execution limits. null means unlimited.",
    "type": "object",
    "properties": {
        "max": {
            "type": "object",
            "default": {},
            "properties": {
                "steps": _limit("Maximum number of trace steps"),
                "iterations": _limit("Maximum loop iterations"),
                "callstack": _limit("Maximum call stack depth"),
                "time": _limit("Maximum execution time in milliseconds"),
            },
        },
        "range": {
            "type": ["array", "null"],
            "items": {"type": "integer", "minimum": 1},
            "minItems": 2,
            "maxItems": 2,
            "default": None,
            "description": "Line range [start, end] to trace; null traces everything",
        },
        "timestamps": {
            "type": "boolean",
            "default": False,
            "description": "Whether steps should carry timestamps",
        },
        "debug": {
            "type": "object",
            "default": {},
            "properties": {
                "ast": {"type": "boolean", "default": False},
            },
        },
    },
})


# =============================================================================
# Stage 1: Shorthand Expansion
# =============================================================================

def _expands_boolean(field_schema: Any) -> bool:
    """True if the field is an object whose declared properties are all booleans."""
    if not isinstance(field_schema, Mapping) or field_schema.get("type") != "object":
        return False
    properties = field_schema.get("properties")
    if not isinstance(properties, Mapping):
        return False
    return all(
        isinstance(p, Mapping) and p.get("type") == "boolean"
        for p in properties.values()
    )


def expand_shorthand(data: Any, schema: Mapping) -> Any:
    """
    Expand boolean shorthand into full objects.

    A boolean supplied where the schema expects an object of booleans becomes
    that object with every property set to the boolean. Returns a new mapping;
    the input is never mutated. Non-mapping data is returned unchanged for the
    validation stage to report.
    """
    if data is None:
        return {}
    if not isinstance(data, Mapping):
        return data

    properties = schema.get("properties") or {}
    expanded = {}
    for key, value in data.items():
        field_schema = properties.get(key)
        if isinstance(value, bool) and _expands_boolean(field_schema):
            expanded[key] = {name: value for name in field_schema["properties"]}
        else:
            expanded[key] = value
    return expanded


# =============================================================================
# Stage 2: Default Injection
# =============================================================================

def _schema_types(schema: Mapping) -> List[str]:
    declared = schema.get("type")
    if isinstance(declared, str):
        return [declared]
    if isinstance(declared, (list, tuple)):
        return list(declared)
    return []


def _matches_type(value: Any, type_name: str) -> bool:
    if type_name == "null":
        return value is None
    if type_name == "boolean":
        return isinstance(value, bool)
    if type_name == "integer":
        return isinstance(value, int) and not isinstance(value, bool) or (
            isinstance(value, float) and value.is_integer()
        )
    if type_name == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if type_name == "string":
        return isinstance(value, str)
    if type_name == "object":
        return isinstance(value, Mapping)
    if type_name == "array":
        return isinstance(value, list)
    return False


_NO_COERCION = object()


def _coerce_to(value: Any, type_name: str) -> Any:
    if type_name in ("integer", "number"):
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, str):
            text = value.strip()
            try:
                return int(text)
            except ValueError:
                pass
            if type_name == "number":
                try:
                    return float(text)
                except ValueError:
                    pass
    elif type_name == "boolean":
        if value in ("true", "false"):
            return value == "true"
        if isinstance(value, int) and not isinstance(value, bool) and value in (0, 1):
            return bool(value)
    elif type_name == "string":
        if isinstance(value, bool):
            return "true" if value else "false"
        if isinstance(value, (int, float)):
            return str(value)
    return _NO_COERCION


def _coerce(value: Any, types: List[str]) -> Any:
    if not types or any(_matches_type(value, t) for t in types):
        return value
    for type_name in types:
        coerced = _coerce_to(value, type_name)
        if coerced is not _NO_COERCION:
            return coerced
    return value


def _declared_properties(schema: Mapping) -> Optional[dict]:
    """Properties declared directly or in ``allOf`` branches; None if there are none."""
    found = None
    properties = schema.get("properties")
    if isinstance(properties, Mapping):
        found = dict(properties)
    for branch in schema.get("allOf") or ():
        if not isinstance(branch, Mapping):
            continue
        nested = _declared_properties(branch)
        if nested is not None:
            found = {} if found is None else found
            for name, field_schema in nested.items():
                found.setdefault(name, field_schema)
    return found


def _fill(value: Any, schema: Mapping) -> Any:
    value = _coerce(value, _schema_types(schema))

    if isinstance(value, FrozenDict):
        properties = _declared_properties(schema)
        if isinstance(properties, Mapping):
            for name, field_schema in properties.items():
                if not isinstance(field_schema, Mapping):
                    continue
                if name not in value and "default" in field_schema:
                    value[name] = deep_clone(field_schema["default"])
                if name in value:
                    value[name] = _fill(value[name], field_schema)

        additional = schema.get("additionalProperties")
        if isinstance(additional, Mapping):
            for name in list(value):
                if not isinstance(properties, Mapping) or name not in properties:
                    value[name] = _fill(value[name], additional)
        elif isinstance(properties, Mapping) and additional is not True:
            for name in [k for k in value if k not in properties]:
                del value[name]

    elif isinstance(value, list):
        items = schema.get("items")
        if isinstance(items, Mapping):
            for index, item in enumerate(value):
                value[index] = _fill(item, items)

    return value


def fill_defaults(data: Any, schema: Mapping) -> Any:
    """
    Fill missing fields with schema defaults.

    Works on a clone, so the input is never mutated and the result is owned
    by the caller. Besides injecting defaults (recursing into injected
    objects too), it coerces unambiguous type mismatches such as ``"10"`` for
    an integer, and silently drops properties the schema does not declare
    unless ``additionalProperties`` allows them.

    Properties declared in ``allOf`` branches count as declared (the first
    declaration of a name wins). ``anyOf``, ``oneOf`` and conditional
    branches are not followed: their defaults are not injected.
    """
    source = {} if data is None else data
    return _fill(deep_clone(source), schema)


# =============================================================================
# Stage 3: Structural Validation
# =============================================================================

def _error_path(error: Any) -> str:
    return "/".join(str(part) for part in error.absolute_path)


def _format_error(error: Any) -> str:
    path = _error_path(error) or "config"
    if error.validator == "enum":
        allowed = ", ".join(str(v) for v in error.validator_value)
        return f"{path} must be one of: {allowed}"
    return f"{path} {error.message}"


def validate_config(data: Any, schema: Mapping) -> Any:
    """
    Validate data against a JSON Schema.

    Returns the same data reference on success so stages can be piped.

    Raises:
        OptionsInvalidError: with every violation, not just the first
    """
    target = FrozenDict() if data is None else data

    errors = list(Draft7Validator(schema).iter_errors(target))
    if errors:
        violations = [_format_error(error) for error in errors]
        logger.debug("configuration rejected with %d violation(s)", len(violations))
        raise OptionsInvalidError(
            "; ".join(violations),
            path=_error_path(errors[0]),
            violations=violations,
        )

    return target


def prepare_config(data: Any, schema: Mapping) -> Any:
    """Run expand -> fill -> validate and return the fully-resolved data."""
    expanded = expand_shorthand(data, schema)
    filled = fill_defaults(expanded, schema)
    return validate_config(filled, schema)


# =============================================================================
# Resolved Config
# =============================================================================

@dataclass(frozen=True)
class ResolvedConfig:
    """
    Fully-defaulted, fully-validated configuration handed to ``execute``.

    Capabilities can trust every field: nothing is partial or missing.
    """
    limits: Mapping
    options: Mapping

    def to_dict(self) -> dict:
        return {"limits": self.limits, "options": self.options}


def resolve_config(capability: Any, raw_config: Any = None) -> ResolvedConfig:
    """
    Resolve a raw ``{"limits": ..., "options": ...}`` config for a capability.

    Limits resolve against LIMITS_SCHEMA; options resolve against the
    capability's own schema, or to an empty mapping when it declares none.
    The semantic validator is NOT run here.

    Raises:
        OptionsInvalidError: if either half fails schema validation
    """
    raw = raw_config if raw_config is not None else {}

    limits = prepare_config(raw.get("limits"), LIMITS_SCHEMA)

    options_schema = capability_field(capability, "options_schema")
    if options_schema is not None:
        options = prepare_config(raw.get("options"), options_schema)
    else:
        options = FrozenDict()

    logger.debug(
        "resolved config for capability %r",
        capability_field(capability, "identity"),
    )
    # Both halves are fresh clones from fill_defaults, so they are ours to lock.
    return ResolvedConfig(
        limits=deep_freeze_in_place(limits),
        options=deep_freeze_in_place(options),
    )
