"""
Configuration settings for the application
"""

import os
from typing import List
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application settings"""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./data/events.sqlite")

    # Application
    BASE_URL: str = os.getenv("BASE_URL", "http://localhost:3000")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # Static assets (event logos live under STATIC_DIR/logos/<key>/)
    STATIC_DIR: str = os.getenv("STATIC_DIR", "static")
    LOGO_MAX_DIMENSION: int = 1024

    # Legacy file-backed layout: events/<folder>/*.csv
    LEGACY_EVENTS_DIR: str = os.getenv("LEGACY_EVENTS_DIR", "events")

    # CORS
    ALLOW_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8000",
    ]

    # File limits
    MAX_UPLOAD_SIZE: int = 10 * 1024 * 1024  # 10MB

    class Config:
        env_file = ".env"

    @property
    def logo_dir(self) -> str:
        return os.path.join(self.STATIC_DIR, "logos")

settings = Settings()
