"""
Custom exceptions for the guide search domain.

These exceptions represent domain-level errors and are independent
of infrastructure concerns (HTTP, storage, etc.).
"""

from typing import Any, Optional


class GuideSearchException(Exception):
    """Base exception for all guide search errors."""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


class MalformedEntryException(GuideSearchException):
    """Raised when a catalog guide is missing a required textual field."""

    def __init__(self, entry_name: str, field: str):
        message = f"Guide '{entry_name or '<unnamed>'}' is missing required field '{field}'"
        super().__init__(
            message=message, details={"entry": entry_name, "field": field}
        )


class ScoringFailureException(GuideSearchException):
    """Raised when scoring a single guide fails unexpectedly."""

    def __init__(self, entry_name: str, reason: Optional[str] = None):
        message = f"Scoring failed for guide '{entry_name}'"
        if reason:
            message += f": {reason}"
        super().__init__(
            message=message, details={"entry": entry_name, "reason": reason}
        )


class CatalogUnavailableException(GuideSearchException):
    """Raised when no usable catalog snapshot is loaded."""

    def __init__(self, reason: Optional[str] = None):
        message = "Guide catalog unavailable"
        if reason:
            message += f": {reason}"
        super().__init__(message=message, details={"reason": reason})


class ValidationException(GuideSearchException):
    """Raised when input validation fails."""

    def __init__(self, field: str, value: Any, reason: str):
        message = f"Validation failed for {field}: {reason}"
        super().__init__(
            message=message,
            details={"field": field, "value": str(value), "reason": reason},
        )
