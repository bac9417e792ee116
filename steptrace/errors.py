"""
errors.py

Error taxonomy for steptrace.

Every failure the package can report derives from TraceError and carries a
stable error code:

- T0xx: developer-facing contract errors (bad capability, bad arguments,
  bad configuration)
- T1xx: content-facing errors raised by a capability while tracing
- T9xx: internal failures (anything outside the taxonomy)

Capabilities raise ParseError, ExecutionError and LimitExceededError from
their execute function; steptrace raises the rest.
"""

from dataclasses import dataclass
from typing import Optional, Sequence, Tuple


@dataclass(frozen=True)
class SourceLocation:
    """Source position of an error (line is 1-indexed, column 0-indexed)."""
    line: int
    column: int = 0

    def format(self) -> str:
        """Format location as 'line N, column M'."""
        return f"line {self.line}, column {self.column}"


class TraceError(Exception):
    """
    Base class for all steptrace errors.

    Catch this to handle every failure the package or a capability reports.
    The safe wrappers return instances of this class instead of raising.
    """

    def __init__(self, message: str, *, error_code: str = "T000"):
        self.message = message
        self.error_code = error_code
        super().__init__(self.format_short())

    def format_short(self) -> str:
        """Format as single-line error message."""
        return f"[{self.error_code}] {self.message}"

    def format_full(self) -> str:
        """Format as multi-line human-readable error."""
        header = f"Error {self.error_code}"
        location = getattr(self, "location", None)
        if location is not None:
            header += f" at {location.format()}"
        return f"{header}\n\n  {self.message}"


# === Contract Errors (T0xx) ===

class CapabilityInvalidError(TraceError):
    """Raised when a value does not satisfy the capability contract."""

    def __init__(self, violations: Sequence[str]):
        self.violations: Tuple[str, ...] = tuple(violations)
        super().__init__(
            f"Invalid capability: {'; '.join(self.violations)}",
            error_code="T001",
        )


class ArgumentInvalidError(TraceError):
    """Raised when a wrapper argument is missing or has the wrong type."""

    def __init__(self, field: str, message: str):
        self.field = field
        super().__init__(message, error_code="T002")


class OptionsInvalidError(TraceError):
    """
    Raised when configuration fails schema validation.

    ``violations`` holds every violation found, ``path`` the path of the
    first one.
    """

    def __init__(
        self,
        message: str,
        path: Optional[str] = None,
        violations: Sequence[str] = (),
    ):
        self.path = path
        self.violations: Tuple[str, ...] = tuple(violations) or (message,)
        super().__init__(message, error_code="T003")


class OptionsSemanticInvalidError(TraceError):
    """Raised by a capability's semantic validator for cross-field constraints."""

    def __init__(self, message: str):
        super().__init__(message, error_code="T004")


# === Tracing Errors (T1xx) ===

class ParseError(TraceError):
    """Raised by a capability when the source text cannot be parsed."""

    def __init__(self, message: str, location: SourceLocation):
        self.location = location
        super().__init__(message, error_code="T101")


class ExecutionError(TraceError):
    """Raised by a capability when execution of the source text fails."""

    def __init__(self, message: str, location: Optional[SourceLocation] = None):
        self.location = location
        super().__init__(message, error_code="T102")


class LimitExceededError(TraceError):
    """Raised by a capability when a configured limit is exceeded."""

    def __init__(self, message: str, limit: str, actual: float):
        self.limit = limit
        self.actual = actual
        super().__init__(message, error_code="T103")


# === Internal Errors (T9xx) ===

class InternalError(TraceError):
    """
    Wraps an exception that is not part of the taxonomy.

    The original exception is available as ``__cause__``.
    """

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message, error_code="T900")
        self.__cause__ = cause


def as_trace_error(error: BaseException) -> TraceError:
    """Return ``error`` unchanged if it is a TraceError, else wrap it."""
    if isinstance(error, TraceError):
        return error
    return InternalError(str(error) or type(error).__name__, cause=error)


def format_error(error: BaseException) -> str:
    """
    Format any exception for display.

    TraceError instances use their full format; anything else gets a generic
    message without internal details.
    """
    if isinstance(error, TraceError):
        return error.format_full()

    return (
        "Error T900\n"
        "\n"
        "  An unexpected error occurred while tracing."
    )
