"""Custom exception classes for the application."""

from typing import Optional

class AsapAgentException(Exception):
    """Base exception for all application errors."""
    pass


class ValidationError(AsapAgentException):
    """Raised when input validation fails."""
    pass


class StorageError(AsapAgentException):
    """Raised when the cache or conversation storage cannot be read or written."""
    pass


class ExternalAPIError(AsapAgentException):
    """Raised when external API calls (like the chat completion provider) fail."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
