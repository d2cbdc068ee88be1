# hrms/core/config.py
import os
from pydantic_settings import BaseSettings
from pydantic import validator
from typing import List, Optional


class Settings(BaseSettings):
    """Application settings loaded from .env"""

    # === Database ===
    DATABASE_URL: str = "sqlite+aiosqlite:///./hrms.db"
    DATABASE_TEST_URL: Optional[str] = None
    DATABASE_POOL_SIZE: int = 20
    DATABASE_MAX_OVERFLOW: int = 30

    @validator("DATABASE_URL")
    def validate_database_url(cls, v):
        """Ensure database URL is safe for current environment"""
        env = os.getenv("ENVIRONMENT", "development").lower()
        if env == "production" and ("localhost" in v or v.startswith("sqlite")):
            raise ValueError("Production environment cannot use a local database")
        return v

    # === Celery ===
    CELERY_BROKER_URL: str = "redis://localhost:6379/0"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/1"

    # === JWT ===
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    REFRESH_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7

    # === CORS ===
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]
    ALLOWED_METHODS: List[str] = ["*"]
    ALLOWED_HEADERS: List[str] = ["*"]

    # === System ===
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    LOG_TO_FILE: bool = True
    TIMEZONE: str = "UTC"

    # === Security ===
    BCRYPT_ROUNDS: int = 12

    # === Pagination ===
    DEFAULT_PAGE_LIMIT: int = 20
    MAX_PAGE_LIMIT: int = 100

    # === Business Rules ===
    STANDARD_WORK_MINUTES: int = 480
    DEFAULT_BREAK_MINUTES: int = 60
    DEFAULT_OT_MULTIPLIER: float = 1.5
    COMP_OFF_EXPIRY_DAYS: int = 90
    FISCAL_YEAR_START_MONTH: int = 4
    HOURS_PER_WORKING_DAY: int = 8

    # === Seed ===
    DEFAULT_TENANT_CODE: str = "DEMO"
    DEFAULT_TENANT_NAME: str = "Demo Corp"
    SUPER_ADMIN_EMAIL: str = "admin@demo.com"
    SUPER_ADMIN_PASSWORD: str = "admin123"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


# Create a global settings instance
settings = Settings()
