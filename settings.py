# settings.py
"""
LevelUp AI Settings.

Pydantic settings management with environment variable support.
"""

from typing import Dict, List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # MongoDB
    DATABASE_URL: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection string"
    )
    DATABASE_NAME: str = Field(default="levelup_ai")

    # Environment
    ENV: str = Field(default="development")
    DEBUG: bool = Field(default=True)

    # Gemini AI
    GEMINI_API_KEY: Optional[str] = Field(default=None, description="Google Gemini API key")
    GEMINI_MODEL: str = Field(default="gemini-2.0-flash-001")
    GENERATION_TIMEOUT_SECONDS: float = Field(
        default=30.0,
        description="Hard budget for a single provider call"
    )

    # Quotas
    DEFAULT_SUBSCRIPTION_PLAN: str = "free"
    DEFAULT_PLAN_LIMITS: Dict[str, Dict[str, int]] = {
        "free": {"workout": 5, "diet": 5},
        "premium": {"workout": -1, "diet": -1},
    }

    # Diet expansion
    DEFAULT_MEALS_PER_DAY: int = 4
    WEEKLY_PLAN_MEAL_THRESHOLD: int = Field(
        default=21,
        description="Meal count at which a diet response is treated as a full week"
    )

    # CORS
    CORS_ORIGINS: str = "http://localhost:3000,http://localhost:5173,http://localhost:8081"

    # Sentry Error Tracking
    SENTRY_DSN: Optional[str] = None
    SENTRY_ENVIRONMENT: str = "production"
    SENTRY_TRACES_SAMPLE_RATE: float = 0.1

    def get_cors_origins(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        if self.CORS_ORIGINS == "*":
            return ["*"]
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",")]

    @property
    def gemini_configured(self) -> bool:
        """Check if the Gemini provider can be used."""
        return bool(self.GEMINI_API_KEY)

    def validate_required_settings(self) -> None:
        """Validate that required settings are configured."""
        if not self.DATABASE_URL:
            raise ValueError("DATABASE_URL must be set")
        if not self.GEMINI_API_KEY:
            raise ValueError("GEMINI_API_KEY must be set")

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()

# Validate in production
if settings.ENV == "production":
    settings.validate_required_settings()
