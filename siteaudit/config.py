"""Configuration management for the site audit service."""

from dataclasses import dataclass
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="SITEAUDIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Server settings
    host: str = "127.0.0.1"
    port: int = 3000
    debug: bool = False
    environment: Literal["development", "production"] = "development"

    # Database settings
    database_url: str = "sqlite+aiosqlite:///./siteaudit.db"

    # Admin cookie secret; no caller is an admin while this is unset
    admin_secret: str | None = None

    # Logging
    log_level: str = "INFO"


@dataclass(frozen=True)
class FrameworkConfig:
    """Process-wide framework switches, fixed at import time."""

    # Native packages loaded from the environment, never vendored
    external_packages: tuple[str, ...] = ("Pillow",)
    auth_interrupts: bool = True


FRAMEWORK = FrameworkConfig()


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
