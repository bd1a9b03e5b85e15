"""Package-specific exception types."""

from __future__ import annotations


class FormatError(ValueError):
    """Base class for errors that abort formatting of a single file.

    The caller's original content is never modified when one of these
    is raised.
    """


class MalformedInputError(FormatError):
    """Raised when the source text cannot be fully traversed.

    Args:
        message: Human-readable description of the problem.
        line_number: One-based index of the offending line, when known.
    """

    def __init__(self, message: str, line_number: int | None = None):
        self.line_number = line_number
        super().__init__(self._build_message(message))

    def _build_message(self, message: str) -> str:
        if self.line_number is None:
            return message
        return f"{message} (line {self.line_number})"


class UnsupportedOperationError(FormatError):
    """Raised when a requested combination of settings is not implemented.

    Examples:
        raise UnsupportedOperationError("CR line breaks are not supported")
    """
