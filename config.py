"""
Application configuration via pydantic-settings.

All settings are loaded from environment variables (and .env file).

JWTSettings is the explicit configuration object handed to TokenCodec:
one secret and one TTL per token kind (verification, access, refresh).
Secrets must be set in every environment; the minimum length is enforced
only outside development so local runs and tests can use short values.
"""

from __future__ import annotations

from typing import Optional

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_MIN_SECRET_LENGTH = 32


class DatabaseSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    mongodb_uri: str
    db_name: str = "auth-core"


class JWTSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    jwt_issuer: str = "auth-core"
    jwt_audience: str = "auth-core.api"

    # One secret per token kind so a token of one kind can never verify as another
    verify_email_secret: str = ""
    access_token_secret: str = ""
    refresh_token_secret: str = ""

    verify_email_ttl_seconds: int = 600
    access_token_ttl_seconds: int = 300
    refresh_token_ttl_seconds: int = 259200
    password_reset_ttl_seconds: int = 600

    cookie_secure: bool = True

    @model_validator(mode="after")
    def _require_secrets(self) -> "JWTSettings":
        missing = [name for name, value in self._secrets().items() if not value]
        if missing:
            raise ValueError("JWT secrets must be set: " + ", ".join(missing))
        return self

    def _secrets(self) -> dict[str, str]:
        return {
            "verify_email_secret": self.verify_email_secret,
            "access_token_secret": self.access_token_secret,
            "refresh_token_secret": self.refresh_token_secret,
        }

    def weak_secrets(self) -> list[str]:
        """Return the names of secrets shorter than the production minimum."""
        return [
            name
            for name, value in self._secrets().items()
            if len(value) < _MIN_SECRET_LENGTH
        ]


class EmailSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    zepto_api_token: str = ""
    zepto_from_email: str = "noreply@example.com"
    zepto_from_name: str = "auth-core"


class LoggingSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    log_level: str = "INFO"
    log_format: str = "console"  # "json" in production


class SentrySettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    sentry_dsn: str = ""
    sentry_send_pii: bool = False
    sentry_traces_sample_rate: float = 0.1
    sentry_profile_sample_rate: float = 0.05


class AppSettings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    env: str = "development"
    app_url: str = "http://localhost:8000"
    app_name: str = "auth-core"

    cors_origins: list[str] = ["*"]

    # OpenAPI docs URL (None disables the docs UI in production)
    docs_url: Optional[str] = "/docs"

    # Sub-configs (composed via model_validator below)
    db: Optional[DatabaseSettings] = None
    jwt: Optional[JWTSettings] = None
    email: Optional[EmailSettings] = None
    logging: Optional[LoggingSettings] = None
    sentry: Optional[SentrySettings] = None

    @model_validator(mode="after")
    def _populate_sub_configs(self) -> "AppSettings":
        if self.db is None:
            self.db = DatabaseSettings()
        if self.jwt is None:
            self.jwt = JWTSettings()
        if self.email is None:
            self.email = EmailSettings()
        if self.logging is None:
            self.logging = LoggingSettings()
        if self.sentry is None:
            self.sentry = SentrySettings()

        if self.env != "development":
            weak = self.jwt.weak_secrets()
            if weak:
                raise ValueError(
                    f"JWT secrets must be at least {_MIN_SECRET_LENGTH} characters: "
                    + ", ".join(weak)
                )
        return self

    @property
    def is_production(self) -> bool:
        return self.env == "production"
