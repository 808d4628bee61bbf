"""Exception hierarchy for Inkpost.

Every error that can reach an API boundary derives from ``InkpostError``
and carries the HTTP status it maps to, so the REST exception handlers and
the GraphQL error formatter never need to inspect exception types.
"""

import time
from enum import Enum
from typing import Any, Dict, Optional


class ErrorCategory(Enum):
    """Error categories."""

    CONFLICT = "conflict"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    CONFIGURATION = "configuration"
    STORAGE = "storage"
    SYSTEM = "system"


class InkpostError(Exception):
    """Base exception for all Inkpost errors."""

    status_code: int = 500
    default_code: str = "INTERNAL_ERROR"

    def __init__(
        self,
        message: str,
        error_code: Optional[str] = None,
        category: ErrorCategory = ErrorCategory.SYSTEM,
        cause: Optional[Exception] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.category = category
        self.cause = cause
        self.metadata = metadata or {}
        self.timestamp = time.time()

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary."""
        return {
            "type": self.__class__.__name__,
            "message": self.message,
            "error_code": self.error_code,
            "category": self.category.value,
            "status_code": self.status_code,
            "cause": str(self.cause) if self.cause else None,
            "metadata": self.metadata,
            "timestamp": self.timestamp,
        }

    @property
    def extensions(self) -> Dict[str, Any]:
        """GraphQL error extensions; graphql-core copies them from the original error."""
        return {"code": self.error_code}

    def __str__(self) -> str:
        return self.message


class ConflictError(InkpostError):
    """A unique key (the username) is already taken."""

    status_code = 400
    default_code = "CONFLICT"

    def __init__(self, message: str = "User already exists", **kwargs):
        super().__init__(message, category=ErrorCategory.CONFLICT, **kwargs)


class InvalidCredentialsError(InkpostError):
    """Login failed.

    The same message is used for an unknown username and a wrong password.
    """

    status_code = 400
    default_code = "INVALID_CREDENTIALS"

    def __init__(self, message: str = "Invalid username or password", **kwargs):
        super().__init__(message, category=ErrorCategory.AUTHENTICATION, **kwargs)


class UnauthenticatedError(InkpostError):
    """No bearer credential was presented."""

    status_code = 401
    default_code = "UNAUTHENTICATED"

    def __init__(self, message: str = "Unauthorized", **kwargs):
        super().__init__(message, category=ErrorCategory.AUTHENTICATION, **kwargs)


class ForbiddenError(InkpostError):
    """Invalid or expired credential, or an ownership mismatch."""

    status_code = 403
    default_code = "FORBIDDEN"

    def __init__(self, message: str = "Forbidden", **kwargs):
        super().__init__(message, category=ErrorCategory.AUTHORIZATION, **kwargs)


class NotFoundError(InkpostError):
    """Requested resource does not exist or its id is malformed."""

    status_code = 404
    default_code = "NOT_FOUND"

    def __init__(
        self,
        message: str = "Not found",
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(message, category=ErrorCategory.NOT_FOUND, **kwargs)
        self.resource_type = resource_type
        self.resource_id = resource_id

    def to_dict(self) -> Dict[str, Any]:
        """Convert not-found error to dictionary."""
        data = super().to_dict()
        data.update(
            {"resource_type": self.resource_type, "resource_id": self.resource_id}
        )
        return data


class ValidationError(InkpostError):
    """Request input failed validation."""

    status_code = 400
    default_code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        value: Optional[Any] = None,
        **kwargs,
    ):
        super().__init__(message, category=ErrorCategory.VALIDATION, **kwargs)
        self.field = field
        self.value = value

    def to_dict(self) -> Dict[str, Any]:
        """Convert validation error to dictionary."""
        data = super().to_dict()
        data.update(
            {
                "field": self.field,
                "value": str(self.value) if self.value is not None else None,
            }
        )
        return data


class ConfigurationError(InkpostError):
    """Configuration error raised at startup."""

    default_code = "CONFIGURATION_ERROR"

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        config_value: Optional[Any] = None,
        **kwargs,
    ):
        super().__init__(message, category=ErrorCategory.CONFIGURATION, **kwargs)
        self.config_key = config_key
        self.config_value = config_value

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration error to dictionary."""
        data = super().to_dict()
        data.update({"config_key": self.config_key})
        return data


class StorageError(InkpostError):
    """Document store failure that has no closer mapping."""

    default_code = "STORAGE_ERROR"

    def __init__(
        self,
        message: str,
        collection: Optional[str] = None,
        operation: Optional[str] = None,
        **kwargs,
    ):
        super().__init__(message, category=ErrorCategory.STORAGE, **kwargs)
        self.collection = collection
        self.operation = operation

    def to_dict(self) -> Dict[str, Any]:
        """Convert storage error to dictionary."""
        data = super().to_dict()
        data.update({"collection": self.collection, "operation": self.operation})
        return data
