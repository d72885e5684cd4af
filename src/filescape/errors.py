"""Error handling utilities for filescape.

Provides the exception taxonomy shared by the scanner, the classifier
and the layout engine, plus small validation helpers used by the
configuration dataclasses.
"""

from pathlib import Path


class FilescapeError(Exception):
    """Base exception for filescape errors."""

    pass


class ScanError(FilescapeError):
    """Exception raised when scanning fails."""

    def __init__(self, path: Path | str, reason: str) -> None:
        """Initialize scan error.

        Args:
            path: Path that failed to scan
            reason: Reason for failure
        """
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Failed to scan {path}: {reason}")


class InvalidRootError(ScanError):
    """The scan root does not exist or cannot be read."""


class BudgetExceededError(ScanError):
    """The scan visited more nodes than the configured limit allows."""

    def __init__(self, path: Path | str, limit: int) -> None:
        self.limit = limit
        super().__init__(path, f"node count limit of {limit} exceeded")


class ScanCancelledError(ScanError):
    """The caller asked for an in-flight scan to stop."""

    def __init__(self, path: Path | str) -> None:
        super().__init__(path, "scan cancelled")


class ChildReadError(ScanError):
    """A single child entry could not be read.

    The scanner recovers from this by omitting the child.
    """


class ClassificationUnavailable(FilescapeError):
    """Content of a file could not be sampled for classification."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = Path(path)
        self.reason = reason
        super().__init__(f"Cannot classify {path}: {reason}")


class LayoutError(FilescapeError):
    """Exception raised when layout calculation fails."""

    def __init__(self, reason: str) -> None:
        """Initialize layout error.

        Args:
            reason: Reason for failure
        """
        self.reason = reason
        super().__init__(f"Layout calculation failed: {reason}")


class ValidationError(FilescapeError):
    """Exception raised when input validation fails."""

    def __init__(self, field: str, value: object, expected: str) -> None:
        """Initialize validation error.

        Args:
            field: Field name that failed validation
            value: Invalid value
            expected: Expected type/description
        """
        self.field = field
        self.value = value
        self.expected = expected
        super().__init__(f"Validation failed for '{field}': expected {expected}, got {value!r}")


def validate_directory(path: Path) -> None:
    """Validate that a path is a directory.

    Args:
        path: Path to validate

    Raises:
        ValidationError: If path is not a directory
    """
    if not path.is_dir():
        raise ValidationError("path", path, "directory")


def validate_range(value: int | float, min_val: int | float, max_val: int | float, name: str = "value") -> None:
    """Validate that a value is within range.

    Args:
        value: Value to validate
        min_val: Minimum allowed value
        max_val: Maximum allowed value
        name: Name of the value for error messages

    Raises:
        ValidationError: If value is out of range
    """
    if not (min_val <= value <= max_val):
        raise ValidationError(name, value, f"value between {min_val} and {max_val}")
