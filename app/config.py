"""
Configuration management for the Medical Analysis Assistant.

Uses Pydantic Settings for type-safe environment variable handling.
All configuration is loaded from environment variables, .env or .env.local.
"""

from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=(".env", ".env.local"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # ==========================================================================
    # Application
    # ==========================================================================
    app_name: str = "Medical Analysis Assistant"
    app_version: str = "1.0.0"
    debug: bool = False
    log_level: str = "INFO"

    # ==========================================================================
    # Server
    # ==========================================================================
    host: str = "0.0.0.0"
    port: int = 5000
    cors_origin_regex: str = r"^http://(localhost|127\.0\.0\.1):\d+$"
    frontend_dir: str = "dist"

    # ==========================================================================
    # Chat-completion API (OpenRouter compatible)
    # ==========================================================================
    openrouter_api_key: str = ""
    openrouter_base_url: str = "https://openrouter.ai/api/v1"
    openrouter_model: str = "moonshotai/kimi-vl-a3b-thinking:free"
    openrouter_referer: str = "http://localhost"
    openrouter_title: str = "Medical Analysis Assistant"
    request_timeout_seconds: float = 90.0
    llm_temperature: float = 0.2
    llm_max_tokens: int = 1200

    # ==========================================================================
    # Rate Limiting
    # ==========================================================================
    rate_limit_enabled: bool = True
    rate_limit_per_minute: int = 30

    # ==========================================================================
    # File Upload
    # ==========================================================================
    max_file_size_mb: int = 10
    max_files: int = 6
    pdf_text_limit: int = 10000

    # ==========================================================================
    # Computed Properties
    # ==========================================================================
    @property
    def max_file_size_bytes(self) -> int:
        """Maximum file size in bytes."""
        return self.max_file_size_mb * 1024 * 1024

    @property
    def frontend_path(self) -> Path:
        """Path to a built frontend, served when present."""
        return Path(self.frontend_dir)


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


# Convenience access
settings = get_settings()
