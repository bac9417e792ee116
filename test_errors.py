"""
test_errors.py

Tests for the steptrace error taxonomy.

Validates:
- Every kind carries its error code and extra fields
- Short and full formats
- Unknown exceptions are wrapped, never exposed raw
"""

import pytest

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
    as_trace_error,
    format_error,
)


class TestSourceLocation:
    """Test SourceLocation formatting."""

    def test_format(self):
        loc = SourceLocation(line=3, column=0)
        assert loc.format() == "line 3, column 0"

    def test_immutable(self):
        loc = SourceLocation(line=1)
        with pytest.raises(AttributeError):
            loc.line = 2


class TestTraceErrorBase:
    """Test the base TraceError class."""

    def test_str_uses_short_format(self):
        err = TraceError("Something went wrong")
        assert str(err) == "[T000] Something went wrong"

    def test_full_format_without_location(self):
        err = OptionsSemanticInvalidError("bad combination")
        assert err.format_full() == "Error T004\n\n  bad combination"

    def test_full_format_with_location(self):
        err = ParseError("Unexpected token", SourceLocation(line=2, column=5))
        full = err.format_full()
        assert full.startswith("Error T101 at line 2, column 5")
        assert "Unexpected token" in full

    def test_all_kinds_are_trace_errors(self):
        kinds = [
            CapabilityInvalidError(["x"]),
            ArgumentInvalidError("text", "x"),
            OptionsInvalidError("x"),
            OptionsSemanticInvalidError("x"),
            ParseError("x", SourceLocation(line=1)),
            ExecutionError("x"),
            LimitExceededError("x", "steps", 3),
            InternalError("x"),
        ]
        for err in kinds:
            assert isinstance(err, TraceError)

    def test_error_codes_are_unique(self):
        codes = {
            CapabilityInvalidError(["x"]).error_code,
            ArgumentInvalidError("text", "x").error_code,
            OptionsInvalidError("x").error_code,
            OptionsSemanticInvalidError("x").error_code,
            ParseError("x", SourceLocation(line=1)).error_code,
            ExecutionError("x").error_code,
            LimitExceededError("x", "steps", 3).error_code,
            InternalError("x").error_code,
        }
        assert len(codes) == 8


class TestCapabilityInvalidError:
    """Test the aggregate capability error."""

    def test_keeps_every_violation(self):
        err = CapabilityInvalidError(["identity bad", "execute bad"])
        assert err.violations == ("identity bad", "execute bad")
        assert err.error_code == "T001"

    def test_message_lists_violations(self):
        err = CapabilityInvalidError(["identity bad", "execute bad"])
        assert err.message == "Invalid capability: identity bad; execute bad"


class TestFieldErrors:
    """Test errors carrying extra fields."""

    def test_argument_field(self):
        err = ArgumentInvalidError("config", "expected a mapping")
        assert err.field == "config"
        assert "expected a mapping" in str(err)

    def test_options_violations_default_to_message(self):
        err = OptionsInvalidError("direction must be one of: lr, rl", path="direction")
        assert err.path == "direction"
        assert err.violations == ("direction must be one of: lr, rl",)

    def test_options_violations_explicit(self):
        err = OptionsInvalidError("a; b", path="a", violations=["a", "b"])
        assert err.violations == ("a", "b")

    def test_execution_location_optional(self):
        assert ExecutionError("boom").location is None
        assert ExecutionError("boom", SourceLocation(1, 4)).location.column == 4

    def test_limit_fields(self):
        err = LimitExceededError("too long", "max_length", 12)
        assert err.limit == "max_length"
        assert err.actual == 12


class TestWrapping:
    """Test coercion of unknown exceptions."""

    def test_trace_error_passes_through(self):
        err = ParseError("x", SourceLocation(line=1))
        assert as_trace_error(err) is err

    def test_unknown_error_is_wrapped(self):
        cause = ValueError("boom")
        wrapped = as_trace_error(cause)
        assert isinstance(wrapped, InternalError)
        assert wrapped.message == "boom"
        assert wrapped.__cause__ is cause

    def test_empty_message_uses_type_name(self):
        wrapped = as_trace_error(KeyError())
        assert wrapped.message == "KeyError"


class TestFormatError:
    """Test user-facing formatting."""

    def test_trace_error_full_format(self):
        err = LimitExceededError("Input too long", "steps", 10)
        assert format_error(err) == err.format_full()

    def test_foreign_error_hides_details(self):
        text = format_error(ValueError("secret internals"))
        assert "secret internals" not in text
        assert "T900" in text
