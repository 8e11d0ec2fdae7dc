"""
Application configuration management.
Centralizes all configuration settings for the subtitle service.
"""

import sys
import tempfile
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings


def get_app_data_dir() -> Path:
    """Get the directory used for temporary upload storage."""
    if getattr(sys, 'frozen', False):
        # Packaged build: keep uploads out of the install directory
        return Path(tempfile.gettempdir()) / "BatchSubtitleGenerator"
    # Development: Project root
    return Path(__file__).parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    app_name: str = "Batch Subtitle Generator"
    debug: bool = False
    log_level: str = "INFO"

    # Paths
    base_dir: Path = get_app_data_dir()
    upload_dir: Path = base_dir / "uploads"

    # Transcription (Gemini)
    gemini_api_key: str = Field(default="", validation_alias="GEMINI_API_KEY")
    gemini_model: str = "gemini-2.5-flash"

    # Server
    host: str = "127.0.0.1"
    port: int = 8081
    cors_origins: list[str] = ["*"]

    # File limits
    max_upload_size_mb: int = 100
    allowed_extensions: set[str] = {
        ".mp3", ".wav", ".m4a", ".mp4", ".mpeg", ".webm",
        ".ogg", ".flac", ".aac", ".wma", ".mov", ".mkv",
    }

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        populate_by_name = True


settings = Settings()

# Ensure directories exist
settings.upload_dir.mkdir(parents=True, exist_ok=True)
