"""
Application configuration models and helpers.

Centralizes settings for the webhook receiver, the live feed and the outbound
provider clients. Provider credentials are optional at load time so the
service can start with only part of its integrations configured; callers
report missing values when the feature is actually used.
"""

from functools import lru_cache
from pathlib import Path
from typing import ClassVar, Literal, Optional

import os

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _load_env_file(path: str = ".env") -> None:
    """Best-effort load key=value pairs from a .env file without extra deps."""
    env_path = Path(path)
    if not env_path.exists():
        return
    for raw_line in env_path.read_text().splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        if not key or key in os.environ:
            continue
        cleaned = value.strip().strip('"').strip("'")
        os.environ[key] = cleaned


_load_env_file()


class ZettleSettings(BaseSettings):
    """Credentials for the Zettle OAuth exchange and webhook signatures."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    client_id: Optional[str] = Field(None, validation_alias="ZETTLE_CLIENT_ID")
    api_key: Optional[str] = Field(
        None,
        validation_alias="ZETTLE_API_KEY",
        description="API key used as the JWT-bearer assertion.",
    )
    signing_key: Optional[str] = Field(
        None,
        validation_alias="ZETTLE_SIGNING_KEY",
        description="Shared secret used to sign webhook deliveries.",
    )


class PayPalSettings(BaseSettings):
    """Credentials and environment selection for the PayPal REST API."""

    model_config = SettingsConfigDict(populate_by_name=True, extra="ignore")

    SANDBOX_BASE_URL: ClassVar[str] = "https://api-m.sandbox.paypal.com"
    LIVE_BASE_URL: ClassVar[str] = "https://api-m.paypal.com"

    client_id: Optional[str] = Field(None, validation_alias="PAYPAL_CLIENT_ID")
    client_secret: Optional[str] = Field(None, validation_alias="PAYPAL_CLIENT_SECRET")
    webhook_id: Optional[str] = Field(
        None,
        validation_alias="PAYPAL_WEBHOOK_ID",
        description="Identifier of the webhook registration in the PayPal dashboard.",
    )
    environment: Literal["sandbox", "live"] = Field(
        "sandbox", validation_alias="PAYPAL_ENV"
    )

    @field_validator("environment", mode="before")
    @classmethod
    def _normalize_environment(cls, value: str) -> str:
        """Accept values such as ``LIVE`` or `` sandbox ``."""
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @property
    def api_base_url(self) -> str:
        if self.environment == "live":
            return self.LIVE_BASE_URL
        return self.SANDBOX_BASE_URL


class AppSettings(BaseSettings):
    """Root settings object for the FastAPI application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        populate_by_name=True,
        extra="ignore",
    )

    environment: str = Field("development", validation_alias="APP_ENV")
    log_level: str = Field("INFO", validation_alias="APP_LOG_LEVEL")
    host: str = Field("0.0.0.0", validation_alias="HOST")
    port: int = Field(3000, validation_alias="PORT")
    static_dir: str = Field(
        "public",
        validation_alias="STATIC_DIR",
        description="Directory holding the dashboard UI assets.",
    )
    http_timeout_seconds: float = Field(10.0, validation_alias="HTTP_TIMEOUT_SECONDS")
    leaderboard_size: int = Field(20, validation_alias="LEADERBOARD_SIZE")
    feed_max_pending: int = Field(
        100,
        validation_alias="FEED_MAX_PENDING",
        description="Frames buffered per live feed client before it is dropped.",
    )
    zettle: ZettleSettings = Field(default_factory=ZettleSettings)
    paypal: PayPalSettings = Field(default_factory=PayPalSettings)


@lru_cache()
def get_settings() -> AppSettings:
    """Return a cached settings object."""
    return AppSettings()


__all__ = [
    "AppSettings",
    "PayPalSettings",
    "ZettleSettings",
    "get_settings",
]
