"""
Configuration Utility - Environment Variables Management

Centralized configuration loading from .env files using pydantic-settings.
Type-safe access to all environment variables with validation.

Usage:
    from utils.config import settings

    base_url = settings.LINK_SERVICE_BASE_URL
    limit = settings.ENRICH_CONCURRENCY_LIMIT

The module-level ``settings`` instance only provides defaults. Collaborators
(repository, lookup client, enricher) take their configuration explicitly
through their constructors.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # External Link Service
    LINK_SERVICE_BASE_URL: str = Field(default="https://links.example.com")
    LINK_SERVICE_TIMEOUT: float = Field(default=5.0, gt=0)

    # Enrichment Configuration
    ENRICH_CONCURRENCY_LIMIT: int = Field(default=10, ge=1)
    ENRICH_DEADLINE_SECONDS: float = Field(default=30.0, gt=0)
    ENRICH_REFETCH_EXISTING: bool = Field(default=False)

    # Database Configuration
    SQLITE_PATH: str = Field(default="data/users.db")

    # Backend API Configuration
    API_PORT: int = Field(default=8000)
    API_HOST: str = Field(default="0.0.0.0")
    API_WORKERS: int = Field(default=1)

    # Logging Configuration
    LOG_LEVEL: str = Field(default="INFO")
    LOG_FORMAT: str = Field(default="json")

    # Application Metadata
    ENVIRONMENT: str = Field(default="production")
    APP_NAME: str = Field(default="users-backend")
    APP_VERSION: str = Field(default="0.1.0")

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance.

    Returns:
        Singleton Settings instance
    """
    return Settings()


# Global settings instance
settings = get_settings()
