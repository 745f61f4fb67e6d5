"""
Centralized configuration for the storefront session client.

All settings are loaded from environment variables with sensible defaults.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Ayurveda Storefront"
    app_version: str = "0.1.0"
    debug: bool = False

    # Storefront REST API
    api_base_url: str = "http://localhost:5000"
    api_prefix: str = "/api"
    http_timeout: Optional[float] = None  # None keeps the httpx default

    # Durable session storage
    session_file: Path = Path("~/.ayurveda-storefront/session.json")

    # Logging
    log_level: str = "INFO"

    # Password policy applied by forms before calling update_password
    min_password_length: int = 6

    @property
    def api_url(self) -> str:
        """Base URL for API calls, prefix included."""
        return f"{self.api_base_url.rstrip('/')}/{self.api_prefix.strip('/')}".rstrip("/")


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
