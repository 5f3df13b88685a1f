"""
Platform Configuration
Database, auth provider and translator settings
"""

import os
from typing import List


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_list(value: str) -> List[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings:
    """Environment backed settings, read once at import time"""

    def __init__(self):
        # Document store
        self.MONGO_URL = os.getenv("MONGO_URL", "mongodb://localhost:27017")
        self.DATABASE_NAME = os.getenv("DATABASE_NAME", "elearn_db")
        self.STORE_BACKEND = os.getenv("STORE_BACKEND", "mongo").lower()

        # Auth provider
        self.FIREBASE_ENABLED = _parse_bool(os.getenv("FIREBASE_ENABLED", "true"))
        self.SESSION_IDLE_MINUTES = int(os.getenv("SESSION_IDLE_MINUTES", "60"))

        # Translation widget
        self.TRANSLATOR_URL = os.getenv(
            "TRANSLATOR_URL",
            "https://science-word-twi-schneezy.hf.space/run/predict",
        )
        self.TRANSLATOR_TIMEOUT_SECONDS = float(os.getenv("TRANSLATOR_TIMEOUT_SECONDS", "20"))

        # API
        self.CORS_ORIGINS = _parse_list(os.getenv("CORS_ORIGINS", "*"))
        self.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

        # Dashboards
        self.RECENT_ITEMS_LIMIT = int(os.getenv("RECENT_ITEMS_LIMIT", "5"))

    @staticmethod
    def require_env(key: str) -> str:
        """Get required environment variable or crash"""
        value = os.getenv(key)
        if not value:
            raise RuntimeError(f"Missing required environment variable: {key}")
        return value


settings = Settings()


def firebase_credentials_dict() -> dict:
    """Service account dict for firebase_admin, failing fast on missing vars"""
    return {
        "type": "service_account",
        "project_id": Settings.require_env("FIREBASE_PROJECT_ID"),
        "private_key": Settings.require_env("FIREBASE_PRIVATE_KEY").replace("\\n", "\n"),
        "client_email": Settings.require_env("FIREBASE_CLIENT_EMAIL"),
        "token_uri": "https://oauth2.googleapis.com/token",
    }
