"""
Common infrastructure shared by the REST and GraphQL surfaces.
"""

from .auth import (
    AuthError,
    AuthGuard,
    PasswordHasher,
    RequestContext,
    TokenError,
    TokenExpiredError,
    TokenService,
)

__all__ = [
    "AuthError",
    "AuthGuard",
    "PasswordHasher",
    "RequestContext",
    "TokenError",
    "TokenExpiredError",
    "TokenService",
]
