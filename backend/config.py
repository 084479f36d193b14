# backend/config.py
"""
Application settings.

Values come from environment variables, optionally loaded from a `.env`
file that sits next to this module. Settings are validated once and shared
through `get_settings()`.
"""

import os
import logging
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

env_path = Path(__file__).parent / ".env"
load_dotenv(dotenv_path=env_path)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


class Settings(BaseModel):
    database_url: Optional[str] = None
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"

    # Signs access tokens and download links
    app_secret_key: str = Field(default="change-me-in-production", min_length=16)
    token_algorithm: str = "HS256"

    storage_dir: str = "storage"
    storage_bucket: str = "cvs"
    signed_url_ttl_seconds: int = 3600
    public_base_url: str = "http://localhost:8000"

    cors_origins: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]
    log_level: str = "INFO"

    @field_validator("cors_origins", mode="before")
    @classmethod
    def split_origins(cls, value):
        if isinstance(value, str):
            return [o.strip() for o in value.split(",") if o.strip()]
        return value

    @field_validator("log_level")
    @classmethod
    def upper_level(cls, value: str) -> str:
        return value.upper()

    @classmethod
    def from_env(cls) -> "Settings":
        raw = {
            "database_url": os.getenv("DATABASE_URL"),
            "openai_api_key": os.getenv("OPENAI_API_KEY"),
            "openai_model": os.getenv("OPENAI_MODEL"),
            "app_secret_key": os.getenv("APP_SECRET_KEY"),
            "storage_dir": os.getenv("STORAGE_DIR"),
            "storage_bucket": os.getenv("STORAGE_BUCKET"),
            "signed_url_ttl_seconds": os.getenv("SIGNED_URL_TTL_SECONDS"),
            "public_base_url": os.getenv("PUBLIC_BASE_URL"),
            "cors_origins": os.getenv("CORS_ORIGINS"),
            "log_level": os.getenv("LOG_LEVEL"),
        }
        # Unset variables fall back to the field defaults
        return cls(**{k: v for k, v in raw.items() if v is not None})


_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    """
    Get or create the shared Settings instance.

    Returns:
        Validated application settings
    """
    global _settings_instance

    if _settings_instance is None:
        _settings_instance = Settings.from_env()
        logging.basicConfig(level=_settings_instance.log_level, format=LOG_FORMAT)

    return _settings_instance


def reset_settings():
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings_instance
    _settings_instance = None
