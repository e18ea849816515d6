"""
Centralized application settings using Pydantic.
All configuration is loaded from environment variables.
"""
from pydantic_settings import BaseSettings
from typing import Optional, List
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "Community Rewards POS Sync"
    DEBUG: bool = False
    ENVIRONMENT: str = "development"  # development, staging, production

    # Database
    DATABASE_URL: str = "sqlite:///./data/rewards.db"

    # Identity provider access tokens (HS256 shared secret)
    AUTH_JWT_SECRET: str = "local-dev-secret-key-change-in-production"
    AUTH_JWT_ALGORITHM: str = "HS256"
    AUTH_JWT_AUDIENCE: str = "authenticated"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60

    # CORS - every function answers cross-origin requests
    CORS_ORIGINS: List[str] = ["*"]

    # Frontend origin the POS providers redirect back to
    OAUTH_REDIRECT_BASE_URL: str = "http://localhost:5173"

    # Square
    SQUARE_APPLICATION_ID: Optional[str] = None
    SQUARE_APPLICATION_SECRET: Optional[str] = None
    SQUARE_ENVIRONMENT: str = "production"
    SQUARE_API_VERSION: str = "2023-10-18"

    # Clover
    CLOVER_APP_ID: Optional[str] = None
    CLOVER_APP_SECRET: Optional[str] = None
    CLOVER_ENVIRONMENT: str = "production"

    # Lightspeed
    LIGHTSPEED_CLIENT_ID: Optional[str] = None
    LIGHTSPEED_CLIENT_SECRET: Optional[str] = None

    # Outbound provider calls
    POS_HTTP_TIMEOUT: float = 30.0

    # Sentry Error Monitoring
    SENTRY_DSN: Optional[str] = None

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
