"""Centralized configuration using pydantic-settings.

All configuration is loaded from environment variables and .env files.
Nested settings use a double underscore: ROLLGATE_PROVIDER__SOURCE=redis
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Environment(str, Enum):
    """Application environment."""

    DEVELOPMENT = "development"
    STAGING = "staging"
    PRODUCTION = "production"
    TEST = "test"


class LogLevel(str, Enum):
    """Log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class SourceType(str, Enum):
    """Where the configuration snapshot is loaded from."""

    STATIC = "static"
    FILE = "file"
    REDIS = "redis"
    HTTP = "http"


class Settings(BaseSettings):
    """Main application settings.

    All settings can be overridden via environment variables prefixed with
    ``ROLLGATE_``.
    """

    model_config = SettingsConfigDict(
        env_prefix="ROLLGATE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore",
    )

    # ============================================================
    # Core Application Settings
    # ============================================================

    app_name: str = Field("dpsm-api", description="Application name used in configuration keys")
    environment: Environment = Field(Environment.DEVELOPMENT, description="Deployment environment")
    debug: bool = Field(False, description="Debug mode")

    # ============================================================
    # Configuration Provider
    # ============================================================

    class ProviderSettings(BaseModel):
        """Configuration provider and source settings."""

        source: SourceType = Field(SourceType.STATIC, description="Snapshot source type")

        # File source
        file_path: str | None = Field(None, description="Path to a JSON configuration file")

        # Redis source
        redis_url: str = Field("redis://localhost:6379/0", description="Redis URL")
        redis_hash_key: str = Field("rollgate:config", description="Redis hash holding the keys")

        # HTTP source
        http_url: str | None = Field(None, description="URL returning a JSON configuration object")
        http_timeout_seconds: float = Field(5.0, gt=0, description="HTTP request timeout")

        # Refresh lifecycle
        refresh_interval_seconds: float = Field(
            30.0, gt=0, description="Interval between background refreshes"
        )
        max_age_seconds: float | None = Field(
            None, description="Age after which a snapshot is stale (default: 2x interval)"
        )
        poll: bool = Field(False, description="Refresh in a background thread")

        @property
        def effective_max_age_seconds(self) -> float:
            """Max snapshot age before it is reported stale."""
            if self.max_age_seconds is not None:
                return self.max_age_seconds
            return self.refresh_interval_seconds * 2

    provider: ProviderSettings = ProviderSettings()  # type: ignore[call-arg]

    # ============================================================
    # Observability
    # ============================================================

    class ObservabilitySettings(BaseModel):
        """Logging configuration."""

        log_level: LogLevel = Field(LogLevel.INFO, description="Log level")
        log_format: str = Field("json", description="Log format (json or console)")

    observability: ObservabilitySettings = ObservabilitySettings()  # type: ignore[call-arg]

    # ============================================================
    # Validation & Helpers
    # ============================================================

    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v: str | Environment) -> str | Environment:
        """Accept environment names in any case."""
        if isinstance(v, str):
            return Environment(v.lower())
        return v

    @field_validator("app_name")
    @classmethod
    def validate_app_name(cls, v: str) -> str:
        """App name becomes a key segment, so it cannot be blank or dotted."""
        v = v.strip()
        if not v or "." in v:
            raise ValueError("app_name must be a non-empty string without dots")
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == Environment.PRODUCTION


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get global settings instance (singleton)."""
    global _settings
    if _settings is None:
        _settings = Settings()  # type: ignore
    return _settings


def reset_settings() -> None:
    """Reset settings (mainly for testing)."""
    global _settings
    _settings = None
