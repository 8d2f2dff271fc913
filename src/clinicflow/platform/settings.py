"""Centralized configuration using pydantic-settings.

All configuration is loaded from environment variables and .env files.
For nested settings, use double underscore: MODULES__CATALOG_CACHE_TTL=120
"""

from __future__ import annotations

from enum import Enum
from typing import Any

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


class PermissionEnforcement(str, Enum):
    """How permission checks against a module set are answered.

    ``allow_all`` reproduces the placeholder guard that authorizes every
    request; ``enforce`` answers from the aggregated permission set.
    """

    ENFORCE = "enforce"
    ALLOW_ALL = "allow_all"


class Settings(BaseSettings):
    """Main application settings.

    All settings can be overridden via environment variables.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        env_nested_delimiter="__",
        extra="ignore",
    )

    # ============================================================
    # Core Application Settings
    # ============================================================

    app_name: str = Field("clinicflow-platform", description="Application name")
    app_version: str = Field("1.0.0", description="Application version")
    environment: Environment = Field(Environment.DEVELOPMENT, description="Deployment environment")
    debug: bool = Field(False, description="Debug mode")
    testing: bool = Field(False, description="Testing mode")

    # ============================================================
    # Database Configuration
    # ============================================================

    class DatabaseSettings(BaseModel):
        """Database configuration."""

        url: str | None = Field(None, description="Full async database URL")
        host: str = Field("localhost", description="Database host")
        port: int = Field(5432, description="Database port")
        database: str = Field("clinicflow", description="Database name")
        username: str = Field("clinicflow", description="Database username")
        password: str = Field("", description="Database password")

        # Connection pool
        pool_size: int = Field(10, description="Connection pool size")
        max_overflow: int = Field(20, description="Max overflow connections")
        pool_timeout: int = Field(30, description="Pool timeout in seconds")
        pool_recycle: int = Field(3600, description="Recycle connections after seconds")
        pool_pre_ping: bool = Field(True, description="Test connections before use")

        echo: bool = Field(False, description="Echo SQL statements")

    database: DatabaseSettings = DatabaseSettings()  # type: ignore[call-arg]

    # ============================================================
    # Observability
    # ============================================================

    class ObservabilitySettings(BaseModel):
        """Logging configuration."""

        log_level: LogLevel = Field(LogLevel.INFO, description="Root log level")
        log_format: str = Field("console", description="Log renderer: 'json' or 'console'")
        enable_correlation_ids: bool = Field(
            False, description="Attach thread name to every log record"
        )

    observability: ObservabilitySettings = ObservabilitySettings()  # type: ignore[call-arg]

    # ============================================================
    # Module Catalog
    # ============================================================

    class ModuleSettings(BaseModel):
        """Module catalog and entitlement configuration."""

        catalog_cache_ttl: int = Field(
            300, ge=0, description="Seconds a loaded catalog snapshot is reused"
        )
        catalog_cache_size: int = Field(8, ge=1, description="Max cached catalog snapshots")
        permission_enforcement: PermissionEnforcement = Field(
            PermissionEnforcement.ENFORCE,
            description="Answer permission checks from module grants or allow everything",
        )
        default_billing_cycle: str = Field("monthly", description="monthly or yearly")
        currency: str = Field("USD", description="Currency of catalog prices (minor units)")
        locale: str = Field("en_US", description="Locale used to render prices")
        featured_limit: int = Field(6, ge=1, description="Number of featured modules")

        @field_validator("default_billing_cycle")
        def validate_billing_cycle(cls, v: str) -> str:
            """Validate billing cycle."""
            value = v.lower()
            if value not in {"monthly", "yearly"}:
                raise ValueError("default_billing_cycle must be 'monthly' or 'yearly'")
            return value

    modules: ModuleSettings = ModuleSettings()  # type: ignore[call-arg]

    # ============================================================
    # Validation & Helpers
    # ============================================================

    @field_validator("environment", mode="before")
    def validate_environment(cls, v: Any) -> Any:
        """Validate environment."""
        if isinstance(v, str):
            return Environment(v.lower())
        return v

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == Environment.PRODUCTION

    @property
    def is_development(self) -> bool:
        """Check if running in development."""
        return self.environment == Environment.DEVELOPMENT

    @property
    def is_testing(self) -> bool:
        """Check if running in test mode."""
        return self.testing or self.environment == Environment.TEST


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


# Convenience export
settings = get_settings()
