"""
Application configuration using Pydantic Settings.

Automatically loads environment variables from .env files.
"""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

GEMINI_OPENAI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta/openai/"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Gemini (through its OpenAI-compatible endpoint)
    gemini_api_key: str | None = None
    gemini_model: str = "gemini-1.5-flash"
    gemini_base_url: str = GEMINI_OPENAI_BASE_URL

    # Uploads
    max_upload_bytes: int = 50 * 1024 * 1024

    # Server
    host: str = "0.0.0.0"
    port: int = 3000
    allowed_origins: str = "*"

    # Debug flags
    debug: bool = False
    ai_mock_mode: bool = False

    model_config = SettingsConfigDict(
        # Load from .env file in the package directory
        env_file=Path(__file__).parent / ".env",
        env_file_encoding="utf-8",
        extra="ignore",
        # Case insensitive environment variable names
        case_sensitive=False,
    )

    @property
    def cors_origins(self) -> list[str]:
        """ALLOWED_ORIGINS split on commas; ``*`` allows any origin."""
        origins = [o.strip() for o in self.allowed_origins.split(",") if o.strip()]
        return origins or ["*"]


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Returns:
        Settings: Application configuration loaded from environment.
    """
    return Settings()
