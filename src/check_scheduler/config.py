"""Configuration management with Pydantic Settings.

Loads and validates the scheduler's environment variables at startup.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from typing import Annotated, Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from check_scheduler.checks.source import DEFAULT_CHECK_SOURCE_NAME
from check_scheduler.cleanup.alert_cleaner import DEFAULT_ALERT_KEY_PREFIX
from check_scheduler.sync.refresher import DEFAULT_REFRESH_INTERVAL_SECONDS

MIN_REFRESH_INTERVAL_SECONDS = 1
MAX_REFRESH_INTERVAL_SECONDS = 86400

#: Seconds between refreshes, bounded the same way wherever it is set.
RefreshInterval = Annotated[
    int, Field(ge=MIN_REFRESH_INTERVAL_SECONDS, le=MAX_REFRESH_INTERVAL_SECONDS)
]


def _validate_http_url(v: str) -> str:
    if not v.startswith(("http://", "https://")):
        raise ValueError("URL must be an HTTP(S) endpoint")
    return v


class CheckSourceSettings(BaseSettings):
    """Check definition source settings."""

    model_config = SettingsConfigDict(env_prefix="CHECK_SOURCE_")

    url: str = Field(
        default="http://localhost:8080/api/v1/checks/all-active-check-definitions",
        alias="CHECK_SOURCE_URL",
        description="Endpoint serving all active check definitions",
    )
    name: str = Field(
        default=DEFAULT_CHECK_SOURCE_NAME,
        alias="CHECK_SOURCE_NAME",
        description="Name of the check source, used in logs",
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate check source URL format."""
        return _validate_http_url(v)


class AlertSourceSettings(BaseSettings):
    """Alert definition source settings."""

    model_config = SettingsConfigDict(env_prefix="ALERT_SOURCE_")

    url: str = Field(
        default="http://localhost:8080/api/v1/checks/all-active-alert-definitions",
        alias="ALERT_SOURCE_URL",
        description="Endpoint serving all active alert definitions",
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate alert source URL format."""
        return _validate_http_url(v)


class AuthSettings(BaseSettings):
    """Credentials for the definition authority."""

    model_config = SettingsConfigDict(env_prefix="")

    access_token: SecretStr | None = Field(
        default=None,
        alias="ACCESS_TOKEN",
        description="Static bearer token",
    )
    access_token_file: str | None = Field(
        default=None,
        alias="ACCESS_TOKEN_FILE",
        description="File holding the bearer token, re-read on every request",
    )

    @property
    def enabled(self) -> bool:
        """Check if any credential is configured."""
        return self.access_token is not None or self.access_token_file is not None


class RedisSettings(BaseSettings):
    """Redis settings for alert state cleanup."""

    model_config = SettingsConfigDict(env_prefix="REDIS_")

    url: str | None = Field(
        default=None,
        alias="REDIS_URL",
        description="Redis connection string holding alert state",
    )
    alert_key_prefix: str = Field(
        default=DEFAULT_ALERT_KEY_PREFIX,
        alias="REDIS_ALERT_KEY_PREFIX",
        description="Key prefix of alert state entries",
    )

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str | None) -> str | None:
        """Validate Redis URL format."""
        if v is None:
            return v
        if not v.startswith(("redis://", "rediss://")):
            raise ValueError("REDIS_URL must start with redis:// or rediss://")
        return v

    @property
    def enabled(self) -> bool:
        """Check if alert state cleanup in Redis is enabled."""
        return self.url is not None


class Settings(BaseSettings):
    """Main application settings.

    Loads configuration from environment variables with support for
    .env files.

    Example:
        ```python
        from check_scheduler.config import get_settings

        settings = get_settings()
        print(settings.check_source.url)
        ```
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    check_source: CheckSourceSettings = Field(default_factory=CheckSourceSettings)
    alert_source: AlertSourceSettings = Field(default_factory=AlertSourceSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)

    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        alias="LOG_LEVEL",
        description="Logging level",
    )
    refresh_interval_seconds: RefreshInterval = Field(
        default=DEFAULT_REFRESH_INTERVAL_SECONDS,
        alias="REFRESH_INTERVAL_SECONDS",
        description="Seconds between definition refreshes",
    )

    def get_logging_level(self) -> int:
        """Get the numeric logging level."""
        level: int = getattr(logging, self.log_level)
        return level

    def redacted_summary(self) -> dict[str, str]:
        """Get a summary of settings with secrets redacted.

        Returns:
            Dictionary of settings with sensitive values masked.
        """
        if self.auth.access_token is not None:
            auth = "static token"
        elif self.auth.access_token_file is not None:
            auth = f"token file {self.auth.access_token_file}"
        else:
            auth = "(not set)"
        return {
            "check_source": f"{self.check_source.name} {self.check_source.url}",
            "alert_source": self.alert_source.url,
            "auth": auth,
            "redis_url": self._redact_url(self.redis.url) if self.redis.url else "(not set)",
            "log_level": self.log_level,
            "refresh_interval_seconds": str(self.refresh_interval_seconds),
        }

    @staticmethod
    def _redact_url(url: str) -> str:
        """Redact password from URL if present."""
        if "@" in url and "://" in url:
            protocol_end = url.index("://") + 3
            at_pos = url.index("@")
            creds_part = url[protocol_end:at_pos]
            if ":" in creds_part:
                username = creds_part.split(":")[0]
                return f"{url[:protocol_end]}{username}:***@{url[at_pos + 1 :]}"
        return url


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the application settings singleton.

    Returns:
        The Settings instance.

    Raises:
        ValidationError: If environment variables have invalid values.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache, e.g. to reload with a different environment."""
    get_settings.cache_clear()
