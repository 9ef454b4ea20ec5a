"""
Application configuration settings
"""

from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Application Settings
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    LOG_LEVEL: str = "INFO"

    # Public base URL of the content server, used to build sitemap locations
    APP_URL: str = "http://localhost"

    # Database Configuration
    DATABASE_URL: str = "sqlite:///./sitemaps.db"

    # Redis Configuration (Celery broker and shared caches)
    REDIS_URL: str = "redis://localhost:6379"
    CACHE_KEY_PREFIX: str = "sitemap_engine"

    # Sitemap documents
    ENABLE_SITEMAP: bool = True
    ENABLE_INDEX_SITEMAP: bool = False
    ENABLE_IMAGES_SITEMAP: bool = False
    ENABLE_VIDEOS_SITEMAP: bool = False

    # Media scanning
    SCAN_RENDER_URL: Optional[str] = None
    SCAN_RENDER_TIMEOUT: float = 30.0
    SCAN_TASK_SOFT_TIME_LIMIT: int = 60
    SCAN_TASK_TIME_LIMIT: int = 90


# Create settings instance
settings = Settings()

# Validate required settings in production
if settings.ENVIRONMENT == "production":
    if not settings.APP_URL or "localhost" in settings.APP_URL:
        raise ValueError("APP_URL must point to the public site in production")

# Database URL for SQLAlchemy
DATABASE_URL = settings.DATABASE_URL
if DATABASE_URL.startswith("postgres://"):
    DATABASE_URL = DATABASE_URL.replace("postgres://", "postgresql://", 1)
