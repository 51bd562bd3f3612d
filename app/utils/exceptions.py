"""
Application exceptions.

Each exception maps to one class of failure in the intake pipeline and
carries the message that is safe to return to the client.
"""

from typing import Optional


class IntakeError(Exception):
    """Base class for all intake pipeline errors"""

    status_code: int = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(IntakeError):
    """Missing or malformed input. Raised before any side effect."""

    status_code = 400


class ExtractionError(IntakeError):
    """Resume text could not be read. Never surfaced to the client."""


class DispatchError(IntakeError):
    """The mail provider rejected or failed to deliver a message."""


class StartupConfigError(ValueError):
    """Required configuration is missing or malformed."""
