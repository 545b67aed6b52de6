"""Error schema and structured exceptions.

ErrorInfo is the shape every failure takes once it leaves the engine.
SolvynError subclasses carry an ErrorInfo so the engine can convert them
without guessing; anything else is normalized to INVALID_EXPRESSION.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from solvyn.contracts.enums import ErrorCode

DEFAULT_INVALID_MESSAGE = "Could not parse expression. Check parentheses."
DEFAULT_INVALID_SUGGESTION = "Use standard math operators +, -, *, / or check your syntax."


@dataclass(frozen=True, slots=True)
class ErrorInfo:
    """Taxonomy object attached to error results.

    Attributes:
        code: ErrorCode value (plugins may raise SolvynError with their own code)
        message: Human-readable description
        suggestion: Optional hint for correcting the input
    """

    code: str
    message: str
    suggestion: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"code": str(self.code), "message": self.message}
        if self.suggestion is not None:
            data["suggestion"] = self.suggestion
        return data

    @classmethod
    def from_exception(cls, exc: BaseException) -> ErrorInfo:
        """Normalize any exception into an ErrorInfo.

        SolvynError instances keep their own info. Everything else becomes
        INVALID_EXPRESSION with the exception message preserved.
        """
        if isinstance(exc, SolvynError):
            return exc.info
        message = str(exc) or DEFAULT_INVALID_MESSAGE
        return cls(
            code=ErrorCode.INVALID_EXPRESSION,
            message=message,
            suggestion=DEFAULT_INVALID_SUGGESTION,
        )


class SolvynError(Exception):
    """Base for failures that already know their error code."""

    def __init__(self, code: str, message: str, suggestion: str | None = None) -> None:
        super().__init__(message)
        self.info = ErrorInfo(code=code, message=message, suggestion=suggestion)

    @property
    def code(self) -> str:
        return self.info.code


class InputTooLongError(SolvynError):
    """Raised by the sanitizer when trimmed input exceeds the length limit."""

    def __init__(self, max_length: int) -> None:
        super().__init__(
            ErrorCode.INPUT_TOO_LONG,
            f"Input exceeds maximum allowed length of {max_length} characters.",
            "Shorten your expression.",
        )
        self.max_length = max_length


class UnsupportedInputError(SolvynError):
    """Raised when policy forbids every remaining evaluation path."""

    def __init__(self, reason: str | None = None) -> None:
        super().__init__(
            ErrorCode.UNSUPPORTED_INPUT,
            reason or "Unsupported query for offline mode.",
            "Check your expression or enable AI fallback.",
        )


class StorageError(Exception):
    """Raised by storage adapters when a persistence call fails.

    The history manager catches these (and any other adapter exception);
    they never reach callers of solve().
    """


class SnapshotFormatError(ValueError):
    """Raised when a history snapshot does not parse as a list of history items."""
