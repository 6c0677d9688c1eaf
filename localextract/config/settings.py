"""
Settings - Application configuration using Pydantic Settings.

Loads from environment variables (``LOCALEXTRACT_`` prefix) and .env files.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings."""

    # Local inference server (Ollama)
    ollama_url: str = "http://localhost:11434"
    model_id: str = "llama3.2:3b"
    request_timeout: float = 300.0
    keep_alive: str = "30m"
    pull_model: bool = True
    transport_retries: int = Field(default=3, ge=1)

    # Generation
    max_output_tokens: int = Field(default=256, gt=0)
    temperature: float = Field(default=0.0, ge=0.0, le=2.0)

    # Pipeline
    require_acceleration: bool = True
    validate_output: bool = True
    max_document_chars: int = Field(default=12000, gt=0)
    max_pages: int | None = Field(default=None, gt=0)

    # Logging
    log_level: str = "INFO"

    model_config = SettingsConfigDict(
        env_prefix="LOCALEXTRACT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
