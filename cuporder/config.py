"""Configuration loading for the cup order admin system.

This module provides centralized configuration management:
- Load settings from environment variables and .env files
- Validate configuration using pydantic
- Provide typed access to all settings
"""

from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment.

    Uses pydantic-settings for environment variable handling with
    .env file support via python-dotenv.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Order store and stock source configuration
    store_backend: Literal["memory", "sqlite"] = Field(
        default="memory",
        description="Backend for orders and cup stock",
    )
    store_sqlite_path: str = Field(
        default="./data/cuporder.db",
        description="SQLite database file path",
    )
    store_pool_size: int = Field(
        default=5,
        description="Number of pooled SQLite connections",
    )
    initial_cups_in_stock: int = Field(
        default=0,
        description="Cups added to stock at startup",
    )

    # Logging configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Log level",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log format",
    )

    # Development
    debug: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging",
    )

    @field_validator("initial_cups_in_stock")
    @classmethod
    def validate_initial_cups(cls, v: int) -> int:
        """Ensure initial stock is non-negative."""
        if v < 0:
            raise ValueError("initial_cups_in_stock must be non-negative")
        return v

    @field_validator("store_pool_size")
    @classmethod
    def validate_pool_size(cls, v: int) -> int:
        """Ensure pool size is positive."""
        if v <= 0:
            raise ValueError("store_pool_size must be positive")
        return v


def load_settings(env_file: str | None = None) -> Settings:
    """Load application settings from environment.

    Args:
        env_file: Optional path to .env file. If not provided,
                 uses the default .env in the current directory.

    Returns:
        Validated Settings instance.

    Raises:
        ValidationError: If settings validation fails.
    """
    if env_file:
        return Settings(_env_file=env_file)  # type: ignore[call-arg]
    return Settings()


__all__ = ["Settings", "load_settings"]
