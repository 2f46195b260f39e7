# stockroom/core/config.py

import os
from functools import lru_cache
from typing import List
from pydantic import ConfigDict
from pydantic_settings import BaseSettings


def _parse_origin_list(value: str) -> List[str]:
    return [origin.strip() for origin in (value or "").split(",") if origin.strip()]


class Settings(BaseSettings):
    """
    Application settings.
    Loads values from environment variables (.env file)
    """
    # Database settings
    DATABASE_URL: str = "sqlite+aiosqlite:///./inventory.db"

    # Security
    SECRET_KEY: str = "your-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7  # 7 days

    # File paths
    UPLOAD_DIR: str = "uploads"

    # Recorded as the actor on every stock change until routes pass the caller through
    AUDIT_ACTOR: str = "admin"

    # CORS
    CORS_ORIGINS: str = "*"  # comma-separated

    # Environment
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    RUN_MIGRATIONS: bool = False

    @property
    def cors_origins(self) -> List[str]:
        return _parse_origin_list(self.CORS_ORIGINS)

    model_config = ConfigDict(
        env_file=os.environ.get('ENV_FILE', '.env') if os.path.exists('.env') else None,
        case_sensitive=True,
        extra="ignore"
    )


@lru_cache()
def get_settings():
    """Cached settings to avoid loading .env file for every request"""
    return Settings()


def clear_settings_cache():
    """Clear the settings cache - useful when switching between environments"""
    get_settings.cache_clear()
