"""
Configuration for Inkpost.

Settings are plain dataclass fields with defaults, overridden from
``INKPOST_*`` environment variables. The signing secret has no default and
must be supplied.
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .errors import ConfigurationError

logger = logging.getLogger(__name__)


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in ("true", "1", "yes", "on")


def _parse_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Settings:
    """Process-wide configuration, built once at startup."""

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: List[str] = field(default_factory=list)

    # Document store
    mongo_uri: str = "mongodb://localhost:27017"
    mongo_db_name: str = "blog"

    # Tokens
    jwt_secret: Optional[str] = None
    jwt_algorithm: str = "HS256"
    token_ttl_seconds: int = 3600

    # Passwords
    password_iterations: int = 390000

    # Pagination
    default_page_size: int = 10
    max_page_size: int = 100

    # Logging
    log_level: str = "info"
    log_format: str = "json"
    debug: bool = False

    environment_overrides: Dict[str, Any] = field(default_factory=dict)

    ENV_MAPPINGS = {
        "INKPOST_HOST": ("host", str),
        "PORT": ("port", int),
        "INKPOST_PORT": ("port", int),
        "INKPOST_CORS_ORIGINS": ("cors_origins", list),
        "INKPOST_MONGO_URI": ("mongo_uri", str),
        "INKPOST_MONGO_DB": ("mongo_db_name", str),
        "INKPOST_JWT_SECRET": ("jwt_secret", str),
        "INKPOST_JWT_ALGORITHM": ("jwt_algorithm", str),
        "INKPOST_TOKEN_TTL": ("token_ttl_seconds", int),
        "INKPOST_PASSWORD_ITERATIONS": ("password_iterations", int),
        "INKPOST_PAGE_SIZE": ("default_page_size", int),
        "INKPOST_MAX_PAGE_SIZE": ("max_page_size", int),
        "INKPOST_LOG_LEVEL": ("log_level", str),
        "INKPOST_LOG_FORMAT": ("log_format", str),
        "INKPOST_DEBUG": ("debug", bool),
    }

    def __post_init__(self):
        self.validate()

    @classmethod
    def from_env(
        cls, environ: Optional[Mapping[str, str]] = None, **overrides: Any
    ) -> "Settings":
        """Build settings from defaults, environment variables and overrides.

        Explicit keyword overrides win over the environment. Later entries of
        ``ENV_MAPPINGS`` win over earlier ones, so ``INKPOST_PORT`` beats
        ``PORT``.
        """
        environ = os.environ if environ is None else environ
        values: Dict[str, Any] = {}
        applied: Dict[str, Any] = {}

        for env_var, (attr_name, attr_type) in cls.ENV_MAPPINGS.items():
            env_value = environ.get(env_var)
            if env_value is None:
                continue
            try:
                if attr_type is bool:
                    value = _parse_bool(env_value)
                elif attr_type is list:
                    value = _parse_list(env_value)
                else:
                    value = attr_type(env_value)
            except (ValueError, TypeError) as e:
                raise ConfigurationError(
                    f"Invalid environment variable {env_var}={env_value!r}: {e}",
                    config_key=env_var,
                    config_value=env_value,
                    cause=e,
                )
            values[attr_name] = value
            applied[env_var] = value

        values.update(overrides)
        settings = cls(**values)
        settings.environment_overrides = applied
        return settings

    def validate(self) -> None:
        """Validate settings, raising ConfigurationError on the first problem."""
        if not self.jwt_secret:
            raise ConfigurationError(
                "A token signing secret is required (set INKPOST_JWT_SECRET)",
                config_key="jwt_secret",
            )
        if not 0 < self.port < 65536:
            raise ConfigurationError(
                f"Port must be between 1 and 65535, got {self.port}",
                config_key="port",
                config_value=self.port,
            )
        if self.token_ttl_seconds <= 0:
            raise ConfigurationError(
                "Token TTL must be positive",
                config_key="token_ttl_seconds",
                config_value=self.token_ttl_seconds,
            )
        if self.password_iterations <= 0:
            raise ConfigurationError(
                "Password iterations must be positive",
                config_key="password_iterations",
                config_value=self.password_iterations,
            )
        if self.default_page_size <= 0 or self.max_page_size < self.default_page_size:
            raise ConfigurationError(
                "Page sizes must satisfy 0 < default_page_size <= max_page_size",
                config_key="default_page_size",
                config_value=self.default_page_size,
            )
        if str(self.log_level).lower() not in ("debug", "info", "warning", "error", "critical"):
            raise ConfigurationError(
                f"Unknown log level: {self.log_level}",
                config_key="log_level",
                config_value=self.log_level,
            )
        if self.log_format not in ("json", "text"):
            raise ConfigurationError(
                f"Unknown log format: {self.log_format}",
                config_key="log_format",
                config_value=self.log_format,
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary, with the secret masked."""
        return {
            "host": self.host,
            "port": self.port,
            "cors_origins": list(self.cors_origins),
            "mongo_uri": self.mongo_uri,
            "mongo_db_name": self.mongo_db_name,
            "jwt_secret": "***" if self.jwt_secret else None,
            "jwt_algorithm": self.jwt_algorithm,
            "token_ttl_seconds": self.token_ttl_seconds,
            "password_iterations": self.password_iterations,
            "default_page_size": self.default_page_size,
            "max_page_size": self.max_page_size,
            "log_level": self.log_level,
            "log_format": self.log_format,
            "debug": self.debug,
        }
