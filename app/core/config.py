# app/core/config.py
import os
from pydantic_settings import BaseSettings
from pydantic import validator
from typing import Dict, List, Optional


DEFAULT_OUTLETS = [
    {"code": "BLN", "name": "Bellandur", "type": "Restaurant"},
    {"code": "HSR", "name": "HSR Layout", "type": "Restaurant"},
    {"code": "RR", "name": "Residency Road", "type": "Restaurant"},
    {"code": "WF", "name": "Whitefield", "type": "Restaurant"},
    {"code": "IND", "name": "Indiranagar", "type": "Restaurant"},
    {"code": "KOR", "name": "Koramangala", "type": "Restaurant"},
    {"code": "RAJ", "name": "Rajajinagar", "type": "Restaurant"},
    {"code": "ARK", "name": "Arekere", "type": "Restaurant"},
    {"code": "KLN", "name": "Kalyan Nagar", "type": "Restaurant"},
    {"code": "SKN", "name": "Sahakar Nagar", "type": "Restaurant"},
    {"code": "JAY", "name": "Jayanagar", "type": "Restaurant"},
]


class Settings(BaseSettings):
    """Application settings loaded from .env"""

    # === Database ===
    DATABASE_URL: str = "sqlite+aiosqlite:///./outlet_ops.db"

    @validator("DATABASE_URL")
    def validate_database_url(cls, v):
        """Ensure database URL is safe for current environment"""
        env = os.getenv("ENVIRONMENT", "development").lower()
        if env == "production" and "localhost" in v:
            raise ValueError("Production environment cannot use localhost database!")
        return v

    # === Redis / Celery ===
    REDIS_URL: str = "redis://localhost:6379/0"
    CELERY_BROKER_URL: str = "redis://localhost:6379/1"
    CELERY_RESULT_BACKEND: str = "redis://localhost:6379/2"
    CHECKLIST_REFRESH_SECONDS: float = 300.0

    # === Sheets-backed data API ===
    SHEETS_API_BASE_URL: str = "http://localhost:5000"
    SHEETS_API_TIMEOUT_SECONDS: float = 15.0
    SHEETS_API_RETRIES: int = 3
    SHEETS_API_RETRY_DELAY_SECONDS: float = 1.0
    CHECKLIST_DATA_PATH: str = "/api/checklist-data"
    ROSTER_DATA_PATH: str = "/api/roster-data"

    # === Snapshot cache ===
    SNAPSHOT_CACHE_PREFIX: str = "checklist:snapshot"
    SNAPSHOT_CACHE_TTL_SECONDS: int = 7 * 24 * 3600

    # === Telegram ===
    TELEGRAM_ENABLED: bool = True
    TELEGRAM_BOT_TOKEN: Optional[str] = None
    TELEGRAM_API_URL: str = "https://api.telegram.org"
    NOTIFICATION_CHAT_IDS: Dict[str, str] = {}

    # === CORS ===
    ALLOWED_ORIGINS: List[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]
    ALLOWED_METHODS: List[str] = ["*"]
    ALLOWED_HEADERS: List[str] = ["*"]

    # === System ===
    DEBUG: bool = False
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"
    TIMEZONE: str = "Asia/Kolkata"

    # === Business Rules ===
    OUTLETS: List[Dict[str, str]] = DEFAULT_OUTLETS
    TIME_SLOTS: List[str] = ["Morning", "Mid Day", "Closing"]
    ASSIGNMENT_RULES: Dict[str, List[str]] = {
        "RepairAndMaintenance": ["Nishat"],
        "DifficultyInOrder": [],
        "StockItems": ["Nishat", "Ajay"],
        "Housekeeping": ["Kim"],
        "Others": ["Kim"],
    }
    ASSIGNEE_OPTIONS: List[str] = ["Jatin", "Nishat", "Kim", "Ajay", "Ayaaz", "Sharon"]
    WEEKLY_REPORT_DAYS: int = 7
    PERFORMER_COUNT: int = 3

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


# Create a global settings instance
settings = Settings()
