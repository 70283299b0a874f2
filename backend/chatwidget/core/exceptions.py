"""
Custom exceptions for the application.
"""

from typing import Any, Optional


class ChatWidgetError(Exception):
    """Base exception for chatwidget."""

    def __init__(self, message: str, details: Optional[Any] = None):
        self.message = message
        self.details = details
        super().__init__(message)


class InfrastructureError(ChatWidgetError):
    """Infrastructure-related error (storage, external services, etc.)."""

    pass


class StorageError(InfrastructureError):
    """Key-value storage is corrupt or unavailable."""

    pass


class BackendError(InfrastructureError):
    """Remote backend answered with a non-2xx status."""

    def __init__(self, message: str, status_code: int, details: Optional[Any] = None):
        super().__init__(message, details=details)
        self.status_code = status_code
