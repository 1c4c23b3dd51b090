from __future__ import annotations

from typing import Optional, Sequence, TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from .validation import ValidationIssue


class ParseError(RuntimeError):
    """Raised when a filename cannot be turned into a parsed record."""

    def __init__(self, message: str, filename: Optional[str] = None) -> None:
        super().__init__(message)
        self.filename = filename


class InvalidInputError(ParseError):
    """Raised before any rule runs when the input is empty or whitespace-only."""


class RuleExecutionError(ParseError):
    """Raised when a rule faults while matching or post-processing."""

    def __init__(self, message: str, rule_name: str, filename: Optional[str] = None) -> None:
        super().__init__(message, filename)
        self.rule_name = rule_name


class ConflictResolutionError(ParseError):
    """Raised when conflict resolution meets an empty match group."""

    def __init__(self, message: str, property: str, filename: Optional[str] = None) -> None:
        super().__init__(message, filename)
        self.property = property


class ConfigurationError(ValueError):
    """Raised when a rule configuration document fails validation."""

    def __init__(self, message: str, issues: Sequence[ValidationIssue] = ()) -> None:
        super().__init__(message)
        self.issues = list(issues)
