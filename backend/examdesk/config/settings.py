"""
Configuration settings for ExamDesk.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

ROOT_DIR = Path(__file__).resolve().parents[2]
load_dotenv(ROOT_DIR / '.env')


class Settings:
    """Application settings loaded from environment."""

    # Database
    MONGODB_URL: str = os.environ.get("MONGODB_URI", "mongodb://localhost:27017")
    DATABASE_NAME: str = os.environ.get("DB_NAME", "examdesk")
    MONGODB_TRANSACTIONS: bool = os.environ.get("MONGODB_TRANSACTIONS", "False").lower() == "true"

    # Data access backend: "mongo" or "memory"
    GATEWAY_BACKEND: str = os.environ.get("GATEWAY_BACKEND", "mongo").lower()

    # Server
    PORT: int = int(os.environ.get("PORT", 8001))
    HOST: str = os.environ.get("HOST", "0.0.0.0")
    DEBUG: bool = os.environ.get("DEBUG", "False").lower() == "true"
    CORS_ORIGINS: list = os.environ.get("CORS_ORIGINS", "*").split(",")

    # Exam wizard
    WIZARD_POLICY: str = os.environ.get("WIZARD_POLICY", "strict")
    WIZARD_TTL_MINUTES: int = int(os.environ.get("WIZARD_TTL_MINUTES", 120))
    REDIRECT_DELAY_MS: int = int(os.environ.get("REDIRECT_DELAY_MS", 2000))
    STUDENT_PICKER_LIMIT: int = int(os.environ.get("STUDENT_PICKER_LIMIT", 100))  # rows shown in the manual picker

    # Logging
    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO")

    def validate(self):
        """Validate critical settings."""
        if self.GATEWAY_BACKEND not in ("mongo", "memory"):
            raise ValueError(f"Unknown GATEWAY_BACKEND '{self.GATEWAY_BACKEND}'")
        if self.GATEWAY_BACKEND == "mongo" and not self.MONGODB_URL:
            raise ValueError("MONGODB_URI environment variable not set")
        if self.WIZARD_POLICY not in ("strict", "lenient"):
            raise ValueError(f"Unknown WIZARD_POLICY '{self.WIZARD_POLICY}'")
        return True


# Global settings instance
settings = Settings()
