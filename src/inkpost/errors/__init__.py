"""Inkpost Error Handling System.

This module provides the exception hierarchy shared by the handlers,
the storage layer and both API surfaces.
"""

from .exceptions import (
    ConfigurationError,
    ConflictError,
    ErrorCategory,
    ForbiddenError,
    InkpostError,
    InvalidCredentialsError,
    NotFoundError,
    StorageError,
    UnauthenticatedError,
    ValidationError,
)

__all__ = [
    "ConfigurationError",
    "ConflictError",
    "ErrorCategory",
    "ForbiddenError",
    "InkpostError",
    "InvalidCredentialsError",
    "NotFoundError",
    "StorageError",
    "UnauthenticatedError",
    "ValidationError",
]
