"""Tests for application settings."""

from app.grader.config import GEMINI_OPENAI_BASE_URL, Settings


def test_defaults(monkeypatch):
    """Test default settings without environment overrides."""
    for name in ("GEMINI_MODEL", "GEMINI_BASE_URL", "MAX_UPLOAD_BYTES", "PORT", "ALLOWED_ORIGINS"):
        monkeypatch.delenv(name, raising=False)
    settings = Settings(_env_file=None)
    assert settings.gemini_model == "gemini-1.5-flash"
    assert settings.gemini_base_url == GEMINI_OPENAI_BASE_URL
    assert settings.max_upload_bytes == 50 * 1024 * 1024
    assert settings.port == 3000
    assert settings.cors_origins == ["*"]


def test_environment_overrides(monkeypatch):
    """Test that environment variables are read case-insensitively."""
    monkeypatch.setenv("GEMINI_API_KEY", "secret")
    monkeypatch.setenv("max_upload_bytes", "1024")
    settings = Settings(_env_file=None)
    assert settings.gemini_api_key == "secret"
    assert settings.max_upload_bytes == 1024


def test_cors_origins_split():
    """Test that ALLOWED_ORIGINS is split on commas."""
    settings = Settings(_env_file=None, allowed_origins="https://a.example, https://b.example,")
    assert settings.cors_origins == ["https://a.example", "https://b.example"]
