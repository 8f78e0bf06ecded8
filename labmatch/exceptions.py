"""
Exception hierarchy for LabMatch.

Hierarchy:
    LabMatchError (base)
    ├── ConfigurationError      # Invalid configuration values
    ├── CatalogLoadError        # Missing or unparseable input file
    ├── CatalogValidationError  # Input parsed but violates the record schema
    └── MatchingBudgetExceeded  # Pairwise scoring exceeded its budget
"""

from typing import Optional


class LabMatchError(Exception):
    """Base exception for all LabMatch errors."""


class ConfigurationError(LabMatchError):
    """Raised when configuration values are invalid."""


class CatalogLoadError(LabMatchError):
    """
    Raised when an input catalog cannot be read or parsed.

    Attributes:
        source: Name of the input that failed (e.g. "CDL", "specimens")
        path: Path of the input file, if known
    """

    def __init__(self, source: str, message: str, path: Optional[str] = None):
        self.source = source
        self.path = path
        location = f" ({path})" if path else ""
        super().__init__(f"Failed to load input '{source}'{location}: {message}")


class CatalogValidationError(LabMatchError):
    """Raised when an input catalog does not match the expected record schema."""

    def __init__(self, source: str, message: str):
        self.source = source
        super().__init__(f"Invalid input '{source}': {message}")


class MatchingBudgetExceeded(LabMatchError):
    """Raised when cross-catalog scoring exceeds its comparison or time budget."""
