"""
Core settings and environment variables for Sentinel API.
Uses pydantic-settings for type-safe environment variable loading.
"""

from pydantic_settings import BaseSettings
from typing import List, Optional


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Create a .env file in the root directory to configure these.
    """

    # Application
    APP_NAME: str = "Sentinel API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # CORS - comma separated origins, "*" allows any origin
    CORS_ORIGINS: str = "*"

    # Firebase
    FIREBASE_PROJECT_ID: Optional[str] = None
    FIREBASE_CREDENTIALS_PATH: Optional[str] = None  # Path to service account JSON
    FIREBASE_CREDENTIALS_JSON: Optional[str] = None  # Service account JSON as a string (container deploys)
    FIREBASE_WEB_API_KEY: Optional[str] = None  # Enables password checks on login
    IDENTITY_TIMEOUT_SECONDS: float = 5.0

    # Rate limiting (fixed window per client IP)
    RATE_LIMIT_PER_MINUTE: int = 100

    # Push notifications
    NOTIFICATION_BATCH_SIZE: int = 500  # FCM multicast limit
    ANDROID_CHANNEL_ID: str = "safeconnect_alerts"

    # Feeds
    POST_WINDOW_DAYS: int = 7
    PROXIMITY_CANDIDATE_LIMIT: int = 1000  # Posts older than the newest N are invisible to proximity search

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "allow"

    @property
    def cors_origins(self) -> List[str]:
        return [origin.strip() for origin in self.CORS_ORIGINS.split(",") if origin.strip()]


# Global settings instance
settings = Settings()
