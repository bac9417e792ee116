"""
chars.py

A minimal character-walking capability.

Treats any string as a sequence of characters and produces one step per
character, shaped by its options. Used by the tests and the demo to exercise
every path through steptrace.

Error triggers:
- ParseError: text contains an interrobang (‽)
- ExecutionError: text contains 3+ consecutive identical characters
- LimitExceededError: text longer than options.max_length or limits.max.steps

OptionsInvalidError and OptionsSemanticInvalidError come from the
configuration pipeline and verify_options respectively, not from execute.
"""

import re

from steptrace import (
    Capability,
    ExecutionError,
    LimitExceededError,
    OptionsSemanticInvalidError,
    ParseError,
    SourceLocation,
)

CHAR_CLASSES = ("lowercase", "uppercase", "number", "punctuation", "other")

OPTIONS_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "properties": {
        "remove": {
            "type": "array",
            "items": {"type": "string"},
            "default": [],
        },
        "replace": {
            "type": "object",
            "additionalProperties": {"type": "string"},
            "default": {},
        },
        "direction": {
            "type": "string",
            "enum": ["lr", "rl"],
            "default": "lr",
        },
        "max_length": {
            "type": "integer",
            "minimum": 0,
        },
        "allowed_classes": {
            "type": "object",
            "properties": {
                name: {"type": "boolean", "default": True} for name in CHAR_CLASSES
            },
            "default": {},
        },
    },
}

_TRIPLE = re.compile(r"(.)\1{2}", re.DOTALL)


def char_class(char: str) -> str:
    if "a" <= char <= "z":
        return "lowercase"
    if "A" <= char <= "Z":
        return "uppercase"
    if "0" <= char <= "9":
        return "number"
    if re.match(r"[!-/:-@\[-`{-~]", char):
        return "punctuation"
    return "other"


def verify_options(options):
    """max_length, when set, must be at least the number of removed characters."""
    max_length = options.get("max_length")
    if max_length is not None and max_length < len(options["remove"]):
        raise OptionsSemanticInvalidError(
            f"max_length ({max_length}) must be greater than "
            f"remove length ({len(options['remove'])})"
        )


async def execute(text, config):
    options = config.options
    limits = config.limits

    if "‽" in text:
        raise ParseError("Unexpected interrobang (‽)", SourceLocation(line=1, column=text.index("‽")))

    triple = _TRIPLE.search(text)
    if triple:
        raise ExecutionError(
            f'Triple character not allowed: "{triple.group(1)}" repeated 3 times',
            SourceLocation(line=1, column=triple.start()),
        )

    max_length = options.get("max_length")
    if max_length is not None and len(text) > max_length:
        raise LimitExceededError(
            f"Input length {len(text)} exceeds max_length {max_length}",
            limit="max_length",
            actual=len(text),
        )

    max_steps = limits["max"]["steps"]
    if max_steps is not None and len(text) > max_steps:
        raise LimitExceededError(
            f"Input length {len(text)} exceeds max steps {max_steps}",
            limit="steps",
            actual=len(text),
        )

    ordered = text[::-1] if options["direction"] == "rl" else text
    steps = []
    for column, char in enumerate(ordered):
        if char in options["remove"]:
            continue
        if not options["allowed_classes"][char_class(char)]:
            continue
        steps.append({
            "step": len(steps) + 1,
            "loc": {
                "start": {"line": 1, "column": column},
                "end": {"line": 1, "column": column},
            },
            "char": options["replace"].get(char, char),
        })
    return steps


CHARS = Capability(
    identity="txt:chars",
    domains=("txt",),
    execute=execute,
    options_schema=OPTIONS_SCHEMA,
    semantic_validator=verify_options,
)
