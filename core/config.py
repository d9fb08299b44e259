"""
Application configuration using Pydantic Settings.

Typed settings for the calculation engine, the hosted backend that runs the
server-side recomputation, and logging. Values come from environment
variables or a .env file.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Literal

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CalculationSettings(BaseSettings):
    """Order calculation settings."""

    model_config = SettingsConfigDict(env_prefix="ORDER_")

    tolerance_minor: int = Field(
        default=1,
        description="Maximum client/server total difference, in minor units",
        ge=0,
    )
    cache_enabled: bool = Field(default=False, description="Memoize calculation results")
    cache_ttl_seconds: int = Field(default=300, description="Calculation cache TTL", ge=1)


class BackendSettings(BaseSettings):
    """Hosted backend (serverless functions) settings."""

    model_config = SettingsConfigDict(env_prefix="BACKEND_")

    url: str = Field(default="", description="Backend project URL")
    anon_key: SecretStr = Field(default=SecretStr(""), description="Public API key")
    calculation_function: str = Field(
        default="calculate-order-totals",
        description="Name of the server-side calculation function",
    )
    timeout: float = Field(default=10.0, description="Request timeout in seconds", gt=0)

    @field_validator("url")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Remove trailing slashes so paths can be appended."""
        return v.strip().rstrip("/")

    @property
    def is_configured(self) -> bool:
        """Check if the backend URL and key are configured."""
        return bool(self.url and self.anon_key.get_secret_value())

    @property
    def function_path(self) -> str:
        """Path of the calculation function, relative to the backend URL."""
        return f"/functions/v1/{self.calculation_function}"


class LoggingSettings(BaseSettings):
    """Logging settings."""

    model_config = SettingsConfigDict(env_prefix="LOG_")

    level: str = Field(default="INFO", description="Minimum log level")
    json_format: bool = Field(default=False, description="Emit JSON log lines")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        """Accept only standard level names."""
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            msg = f"Invalid log level: {v}"
            raise ValueError(msg)
        return level


class Settings(BaseSettings):
    """
    Main application settings.

    Aggregates all configuration sections.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    environment: Literal["development", "production", "test"] = Field(
        default="development", description="Application environment"
    )

    calculation: CalculationSettings = Field(default_factory=CalculationSettings)
    backend: BackendSettings = Field(default_factory=BackendSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def is_test(self) -> bool:
        """Check if running in test environment."""
        return self.environment == "test"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Configured Settings instance, loaded once per process.
    """
    return Settings()
