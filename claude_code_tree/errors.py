"""Error types for transcript parsing and tree construction.

Parse errors are raised by ``parse_line`` for a single line and collected
(not raised) by ``parse_lines`` so a batch always completes.
"""

from typing import Optional


class ParseError(ValueError):
    """Base class for per-line transcript parsing failures."""

    kind = "parse"

    def __init__(self, reason: str, line_number: Optional[int] = None):
        super().__init__(reason)
        self.reason = reason
        self.line_number = line_number

    def with_line(self, line_number: int) -> "ParseError":
        """Attach the 1-based line number once the caller knows it."""
        self.line_number = line_number
        return self

    def __str__(self) -> str:
        if self.line_number is None:
            return self.reason
        return f"Line {self.line_number}: {self.reason}"


class DecodeError(ParseError):
    """The line is not valid JSON."""

    kind = "decode"


class SchemaError(ParseError):
    """Valid JSON that does not have the shape of a transcript record."""

    kind = "schema"


class MissingFieldError(SchemaError):
    """A required field is absent (e.g. the ``type`` discriminator)."""

    kind = "missing_field"

    def __init__(
        self, field: str, line_number: Optional[int] = None, context: str = ""
    ):
        reason = f"Missing required field: {field}"
        if context:
            reason = f"{reason} ({context})"
        super().__init__(reason, line_number)
        self.field = field


class TreeInvariantError(AssertionError):
    """Raised when tree construction would break a structural invariant."""
