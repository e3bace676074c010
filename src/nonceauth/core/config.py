"""Configuration management for NonceAuth.

This module uses Pydantic Settings to load and validate configuration from
environment variables and .env files. Configuration is loaded at application
startup and is immutable during runtime.

The lifecycle services never read settings directly. They receive an
``AuthConfig`` value built from the settings, which carries the runtime
``Mode`` and the two time constants they depend on.
"""

from dataclasses import dataclass
from datetime import timedelta
from enum import Enum
from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_SECRET_KEY = "change-me-in-production-use-openssl-rand-hex-32"

# Pending-token lifetimes when NONCEAUTH_TOKEN_EXPIRY_SECONDS is not set.
DEVELOPMENT_TOKEN_EXPIRY_SECONDS = 60 * 60 * 24 * 7
PRODUCTION_TOKEN_EXPIRY_SECONDS = 60 * 15


class Mode(str, Enum):
    """Runtime mode that switches the login token policy."""

    DEVELOPMENT = "development"
    PRODUCTION = "production"

    @property
    def exposes_login_code(self) -> bool:
        """Whether a login request may hand the raw code back to the caller."""
        return self is Mode.DEVELOPMENT

    @property
    def single_attempt_login(self) -> bool:
        """Whether a login token is consumed before its outcome is known."""
        return self is Mode.PRODUCTION


@dataclass(frozen=True)
class AuthConfig:
    """Policy values consumed by the token lifecycle services.

    Attributes:
        mode: Production or development behaviour.
        session_lifetime: How long a bearer token stays valid.
        token_ttl: How long a pending login or email change token lives.
    """

    mode: Mode = Mode.PRODUCTION
    session_lifetime: timedelta = timedelta(hours=48)
    token_ttl: timedelta = timedelta(seconds=PRODUCTION_TOKEN_EXPIRY_SECONDS)


class Settings(BaseSettings):
    """Application configuration settings.

    Settings are loaded from environment variables and .env files.
    All configuration values are validated at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="NONCEAUTH_",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Settings
    app_name: str = "NonceAuth"
    app_version: str = "0.1.0"
    environment: Literal["development", "production", "testing"] = "development"
    debug: bool = False
    api_prefix: str = "/api"
    force_https: bool = True

    # Server Settings
    host: str = "0.0.0.0"
    port: int = 3000
    workers: int = 1

    # Database Settings
    database_url: str = "sqlite+aiosqlite:///./data/nonceauth.db"
    db_pool_size: int = 5
    db_max_overflow: int = 10
    db_pool_timeout: int = 30
    db_pool_recycle: int = 3600
    db_echo: bool = False

    # Security Settings
    secret_key: str = Field(
        default=DEFAULT_SECRET_KEY,
        description="Secret key for bearer token signing",
    )
    session_lifetime_hours: int = Field(default=48, gt=0)
    token_expiry_seconds: int | None = Field(
        default=None,
        gt=0,
        description="Lifetime of pending login and email change tokens",
    )
    reaper_interval_seconds: int = Field(default=60, gt=0)

    # Logging Settings
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    log_format: Literal["json", "console"] = "json"

    # Site identity (used in emails)
    site_title: str = "The Website"
    site_author: str = "The Website Author"
    site_uri: str | None = None

    # Email Settings
    email_transport: Literal["console", "smtp"] = "console"
    email_from_address: str = "noreply@localhost"
    email_from_name: str | None = None
    smtp_host: str | None = None
    smtp_port: int = 587
    smtp_username: str | None = None
    smtp_password: str | None = None
    smtp_use_tls: bool = True
    smtp_use_ssl: bool = False
    smtp_timeout: int = 10

    @field_validator("secret_key")
    @classmethod
    def validate_secret_key(cls, v: str) -> str:
        """Reject an empty signing key."""
        if not v:
            raise ValueError("secret_key must not be empty")
        return v

    @model_validator(mode="after")
    def validate_production_secret(self) -> "Settings":
        """Refuse to run production with the placeholder signing key."""
        if self.is_production and self.secret_key == DEFAULT_SECRET_KEY:
            raise ValueError(
                "NONCEAUTH_SECRET_KEY must be set to a real secret in production."
            )
        return self

    @model_validator(mode="after")
    def validate_production_transport(self) -> "Settings":
        """Refuse to run production with the console transport.

        The console provider logs message bodies, which carry login codes and
        email change links.
        """
        if self.is_production and self.email_transport == "console":
            raise ValueError(
                "NONCEAUTH_EMAIL_TRANSPORT must be smtp in production; "
                "the console transport writes login codes to the log."
            )
        return self

    @model_validator(mode="after")
    def validate_smtp(self) -> "Settings":
        """Require an SMTP host when the SMTP transport is selected."""
        if self.email_transport == "smtp" and not self.smtp_host:
            raise ValueError("NONCEAUTH_SMTP_HOST is required for the smtp transport.")
        return self

    @model_validator(mode="after")
    def validate_sqlite_workers(self) -> "Settings":
        """Validate that SQLite is not used with multiple workers."""
        if self.workers > 1 and self.database_url.startswith("sqlite"):
            raise ValueError(
                "SQLite does not support multiple worker processes. "
                f"Requested {self.workers} workers, but SQLite requires workers=1. "
                "Either use --workers 1 or switch to PostgreSQL."
            )
        return self

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in testing environment."""
        return self.environment == "testing"

    @property
    def mode(self) -> Mode:
        """Token policy mode. Anything other than production is development."""
        return Mode.PRODUCTION if self.is_production else Mode.DEVELOPMENT

    @property
    def token_expiry(self) -> timedelta:
        """Pending token lifetime, defaulting by environment."""
        if self.token_expiry_seconds is not None:
            return timedelta(seconds=self.token_expiry_seconds)
        if self.is_development:
            return timedelta(seconds=DEVELOPMENT_TOKEN_EXPIRY_SECONDS)
        return timedelta(seconds=PRODUCTION_TOKEN_EXPIRY_SECONDS)

    @property
    def auth_config(self) -> AuthConfig:
        """Build the policy value handed to the lifecycle services."""
        return AuthConfig(
            mode=self.mode,
            session_lifetime=timedelta(hours=self.session_lifetime_hours),
            token_ttl=self.token_expiry,
        )

    @property
    def public_uri(self) -> str:
        """Base URI used in links sent by email."""
        return (self.site_uri or f"http://localhost:{self.port}").rstrip("/")

    @property
    def database_url_sync(self) -> str:
        """Get synchronous database URL for migrations."""
        url = self.database_url
        if url.startswith("sqlite+aiosqlite"):
            return url.replace("sqlite+aiosqlite", "sqlite")
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql")
        return url


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Settings: Cached application settings instance.
    """
    return Settings()
