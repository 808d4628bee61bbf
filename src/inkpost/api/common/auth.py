"""
Common Authentication Infrastructure for Inkpost API.

Shared by the REST and GraphQL surfaces: JWT issuance and verification,
password hashing, and the guard that turns an ``Authorization`` header into
a typed request context.
"""

import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional

import jwt
from cryptography.hazmat.backends import default_backend
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

from ...errors import ConfigurationError, ForbiddenError, UnauthenticatedError

logger = logging.getLogger(__name__)


class AuthError(Exception):
    """Authentication error."""
    pass


class TokenError(AuthError):
    """Token is forged, malformed or expired."""
    pass


class TokenExpiredError(TokenError):
    """Token signature is valid but the token has expired."""
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenService:
    """Issues and verifies signed, time-bound identity tokens.

    Verification is a pure computation over the token and the secret; no
    store lookup happens, so a token stays valid until it expires.
    """

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        token_expiry: timedelta = timedelta(hours=1),
        clock: Optional[Callable[[], datetime]] = None,
    ):
        if not secret_key:
            raise ConfigurationError("Token signing secret must not be empty", config_key="jwt_secret")
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.token_expiry = token_expiry
        self.clock = clock or _utcnow

    @classmethod
    def from_settings(cls, settings) -> "TokenService":
        return cls(
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            token_expiry=timedelta(seconds=settings.token_ttl_seconds),
        )

    def issue(self, user_id: str) -> str:
        """Create a token for ``user_id``."""
        now = self.clock()
        payload = {
            "user_id": user_id,
            "iat": now,
            "exp": now + self.token_expiry,
            "jti": secrets.token_urlsafe(16),
        }
        return jwt.encode(payload, self.secret_key, algorithm=self.algorithm)

    def decode(self, token: str) -> Dict[str, Any]:
        """Verify a token and return its payload.

        PyJWT checks the signature and required claims; expiry is judged
        against ``self.clock`` so issue and verify share one notion of now.
        """
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                options={
                    "require": ["exp", "iat", "user_id"],
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except jwt.InvalidTokenError as e:
            raise TokenError(f"Invalid token: {e}")

        exp = payload["exp"]
        if isinstance(exp, bool) or not isinstance(exp, (int, float)):
            raise TokenError("Invalid token: malformed exp")
        if exp <= self.clock().timestamp():
            raise TokenExpiredError("Token has expired")
        if not isinstance(payload.get("user_id"), str) or not payload["user_id"]:
            raise TokenError("Invalid token: malformed user_id")
        return payload

    def verify(self, token: str) -> str:
        """Verify a token and return the user id it was issued for."""
        return self.decode(token)["user_id"]


class PasswordHasher:
    """One-way salted password hashing with PBKDF2-HMAC-SHA256.

    Encoded form: ``pbkdf2_sha256$<iterations>$<salt hex>$<hash hex>``.
    """

    scheme = "pbkdf2_sha256"

    def __init__(self, iterations: int = 390000, salt_length: int = 16, key_length: int = 32):
        if iterations <= 0:
            raise ValueError("Iterations must be positive")
        self.iterations = iterations
        self.salt_length = salt_length
        self.key_length = key_length

    def _derive(self, password: str, salt: bytes, iterations: int, length: int) -> bytes:
        kdf = PBKDF2HMAC(
            algorithm=hashes.SHA256(),
            length=length,
            salt=salt,
            iterations=iterations,
            backend=default_backend(),
        )
        return kdf.derive(password.encode("utf-8"))

    def hash(self, password: str) -> str:
        """Hash a password with a fresh random salt."""
        salt = secrets.token_bytes(self.salt_length)
        derived = self._derive(password, salt, self.iterations, self.key_length)
        return f"{self.scheme}${self.iterations}${salt.hex()}${derived.hex()}"

    def verify(self, password: str, encoded: str) -> bool:
        """Check a password against an encoded hash. Malformed hashes never match."""
        try:
            scheme, iterations, salt_hex, hash_hex = encoded.split("$")
            if scheme != self.scheme:
                return False
            expected = bytes.fromhex(hash_hex)
            derived = self._derive(password, bytes.fromhex(salt_hex), int(iterations), len(expected))
        except (ValueError, AttributeError):
            return False
        return hmac.compare_digest(derived, expected)


def fingerprint(token: str) -> str:
    """Short digest of a token, safe to log."""
    return hashlib.sha256(token.encode()).hexdigest()[:12]


@dataclass(frozen=True)
class RequestContext:
    """Identity resolved by the ``AuthGuard`` for one request."""

    user_id: str
    token: str

    @property
    def token_fingerprint(self) -> str:
        """Short digest of the token, safe to log."""
        return fingerprint(self.token)


class AuthGuard:
    """Turns a bearer credential into a ``RequestContext``.

    A missing credential raises ``UnauthenticatedError``; a credential that
    fails verification (expired or forged alike) raises ``ForbiddenError``.
    """

    def __init__(self, token_service: TokenService):
        self.token_service = token_service

    @staticmethod
    def extract_bearer(authorization: Optional[str]) -> Optional[str]:
        """Return the token of a ``Bearer <token>`` header value, if any."""
        if not authorization:
            return None
        scheme, _, token = authorization.strip().partition(" ")
        if scheme.lower() != "bearer":
            return None
        return token.strip() or None

    def authenticate_token(self, token: Optional[str]) -> RequestContext:
        """Authenticate an already extracted token."""
        if not token:
            raise UnauthenticatedError()
        try:
            user_id = self.token_service.verify(token)
        except TokenExpiredError:
            logger.warning(f"Rejected expired token {fingerprint(token)}")
            raise ForbiddenError()
        except TokenError as e:
            logger.warning(f"Rejected invalid token {fingerprint(token)}: {e}")
            raise ForbiddenError()
        ctx = RequestContext(user_id=user_id, token=token)
        logger.debug(f"Authenticated user {user_id} with token {ctx.token_fingerprint}")
        return ctx

    def authenticate(self, authorization: Optional[str]) -> RequestContext:
        """Authenticate the value of an ``Authorization`` header."""
        return self.authenticate_token(self.extract_bearer(authorization))
