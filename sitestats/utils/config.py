# ==============================================================================
# Application Configuration
# ==============================================================================
"""
Configuration management using pydantic-settings.

All configuration is loaded from environment variables, with support for
.env files via python-dotenv.
"""

from functools import lru_cache
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file before any settings are instantiated
load_dotenv()


class ValkeySettings(BaseSettings):
    """Valkey (Redis-compatible) connection settings for the event store."""

    model_config = SettingsConfigDict(env_prefix="VALKEY_")

    host: str = Field(default="localhost", description="Valkey host")
    port: int = Field(default=6379, description="Valkey port")
    password: Optional[str] = Field(default=None, description="Valkey password")
    db: int = Field(default=0, description="Valkey database number")
    ssl: bool = Field(default=False, description="Use SSL/TLS connection")
    socket_timeout: float = Field(
        default=2.0, description="Socket connect/read timeout in seconds"
    )
    retries: int = Field(
        default=0, description="Client-level retries with backoff (0: fail fast)"
    )

    @property
    def url(self) -> str:
        """Build Valkey connection URL."""
        scheme = "rediss" if self.ssl else "redis"
        if self.password:
            return f"{scheme}://:{self.password}@{self.host}:{self.port}/{self.db}"
        return f"{scheme}://{self.host}:{self.port}/{self.db}"


class AnalyticsSettings(BaseSettings):
    """Visitor analytics settings.

    Controls the storage key layout, the session bounce threshold, the
    real-time window length and which location resolver is used to
    classify visitors.
    """

    model_config = SettingsConfigDict(env_prefix="ANALYTICS_")

    key_prefix: str = Field(
        default="sitestats", description="Prefix for every key written to the store"
    )
    realtime_window_minutes: int = Field(
        default=5, description="Length of the trailing real-time window in minutes"
    )
    bounce_threshold_seconds: int = Field(
        default=30, description="Sessions shorter than this are bounces when they end"
    )
    geolocation: Literal["static", "sample", "ip-api"] = Field(
        default="static",
        description="Location resolver (static, sample, ip-api)",
    )
    geolocation_url: str = Field(
        default="http://ip-api.com/json",
        description="Base URL of the ip-api compatible geolocation service",
    )
    geolocation_timeout: int = Field(
        default=5, description="Geolocation request timeout in seconds"
    )


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        extra="ignore",
    )

    # Nested settings
    valkey: ValkeySettings = Field(default_factory=ValkeySettings)
    analytics: AnalyticsSettings = Field(default_factory=AnalyticsSettings)

    # General settings
    debug: bool = Field(default=False, description="Enable debug mode")
    log_level: str = Field(default="INFO", description="Logging level")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once and cached for subsequent calls.
    """
    return Settings()
