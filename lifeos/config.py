"""
Application configuration using Pydantic Settings.

Centralizes all environment variables and app settings.
Services receive the values they need at construction time instead of
reading the environment themselves.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables or .env.
    Covers the database, token verification, uploads, OCR, the model backend
    and the reminder windows used by the listing endpoints.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "LifeOS API"
    debug: bool = False
    cors_origins: List[str] = ["http://localhost:5173"]

    # MongoDB - Motor (async driver) connection string
    mongodb_url: str = "mongodb://localhost:27017"
    mongodb_database: str = "lifeos_db"

    # Supabase JWT validation - must match Dashboard → Project Settings → API → JWT Secret
    supabase_url: str = "https://your-project.supabase.co"
    supabase_jwt_secret: Optional[str] = None

    # File upload - local storage path
    upload_dir: str = "uploads"
    max_upload_size_mb: int = 10
    allowed_mime_types: List[str] = ["image/png", "image/jpeg", "image/jpg"]

    # OCR - Tesseract via pytesseract
    ocr_language: str = "eng"
    tesseract_cmd: Optional[str] = None  # Only needed when tesseract is not on PATH
    min_text_length: int = 10

    # LLM - Groq (free tier; get key at https://console.groq.com)
    groq_api_key: Optional[str] = None
    llm_model: str = "llama-3.1-8b-instant"
    llm_max_chars: int = 32000
    # When true the locally derived priority replaces the one suggested by the model
    recompute_priority: bool = False

    # Reminder windows (days)
    upcoming_window_days: int = 30
    stats_upcoming_days: int = 7

    @field_validator("supabase_jwt_secret", "groq_api_key", "tesseract_cmd", mode="before")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None or not isinstance(v, str):
            return v
        return v.strip() or None


@lru_cache
def get_settings() -> Settings:
    """
    Cached settings instance.
    Using lru_cache avoids re-reading .env on every request.
    """
    return Settings()
