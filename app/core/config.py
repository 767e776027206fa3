"""
Configuration settings for the application
"""

import os
from typing import List
from pydantic_settings import BaseSettings

class Settings(BaseSettings):
    """Application settings"""

    # Database
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./stage_planner.db")

    # Identity provider
    USE_FIREBASE: bool = os.getenv("USE_FIREBASE", "false").lower() in ("1", "true", "yes")
    FIREBASE_CREDENTIALS_JSON: str | None = os.getenv("FIREBASE_CREDENTIALS_JSON")
    FIREBASE_CREDENTIALS_FILE: str | None = os.getenv("FIREBASE_CREDENTIALS_FILE")
    FIREBASE_CREDENTIALS_B64: str | None = os.getenv("FIREBASE_CREDENTIALS_B64")

    # Sessions older than this are reported as expired
    SESSION_MAX_AGE_SECONDS: int = 3600

    # CORS
    ALLOW_ORIGINS: List[str] = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://localhost:8000",
    ]

    # Workflow limits
    MAX_REPLACEMENT_SUGGESTIONS: int = 3
    NOTIFICATION_PAGE_SIZE: int = 20

    class Config:
        env_file = ".env"

settings = Settings()
