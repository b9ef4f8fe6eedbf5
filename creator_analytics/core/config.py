"""
creator_analytics/core/config.py

Purpose: Application configuration

- Loads environment variables
- Centralizes config values (DB URI, secrets, scan limits)
- Validates configuration on startup
- Environment-specific settings
"""

from pydantic import Field, validator
from pydantic_settings import BaseSettings
from typing import Literal


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Validates all required configs on startup.
    """

    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"

    # MongoDB
    MONGODB_URL: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI"
    )
    MONGODB_DB_NAME: str = Field(
        default="creator_platform",
        description="MongoDB database name"
    )

    # Admin access
    REQUIRE_ADMIN: bool = Field(
        default=True,
        description="Reject admin endpoints when no X-Admin-User-Id header is sent"
    )

    # Bounded reads (per collection, per request)
    STORE_SCAN_LIMIT: int = Field(
        default=500,
        description="Maximum stores read when deriving creator metrics"
    )
    CONTENT_SCAN_LIMIT: int = Field(
        default=1000,
        description="Maximum courses / digital products read per request"
    )
    PURCHASE_SCAN_LIMIT: int = Field(
        default=5000,
        description="Maximum purchases read per request"
    )
    USER_SCAN_LIMIT: int = Field(
        default=5000,
        description="Maximum users read per request"
    )
    ENROLLMENT_SCAN_LIMIT: int = Field(
        default=5000,
        description="Maximum enrollments read per request"
    )
    PIPELINE_SCAN_LIMIT: int = Field(
        default=500,
        description="Maximum creator pipeline entries read per request"
    )
    EVENT_SCAN_LIMIT: int = Field(
        default=10000,
        description="Maximum analytics events read per request"
    )

    # Application
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    API_PREFIX: str = Field(
        default="/api/v1",
        description="API route prefix"
    )
    CORS_ORIGINS: list = Field(
        default=["*"],
        description="Allowed CORS origins"
    )

    # Security
    SECRET_KEY: str = Field(
        default="change-me-in-production",
        description="Application secret key"
    )

    @validator("SECRET_KEY")
    def validate_secret_key(cls, v, values):
        """Ensure secret key is changed in production."""
        if values.get("ENVIRONMENT") == "production" and v == "change-me-in-production":
            raise ValueError("SECRET_KEY must be changed in production environment")
        return v

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"

    class Config:
        env_file = ".env"
        case_sensitive = True
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()


def validate_settings():
    """
    Validates critical settings on application startup.
    Raises ValueError if any required setting is missing or invalid.
    """
    errors = []

    if not settings.MONGODB_URL:
        errors.append("MONGODB_URL is required")

    if not settings.MONGODB_DB_NAME:
        errors.append("MONGODB_DB_NAME is required")

    scan_limits = {
        "STORE_SCAN_LIMIT": settings.STORE_SCAN_LIMIT,
        "CONTENT_SCAN_LIMIT": settings.CONTENT_SCAN_LIMIT,
        "PURCHASE_SCAN_LIMIT": settings.PURCHASE_SCAN_LIMIT,
        "USER_SCAN_LIMIT": settings.USER_SCAN_LIMIT,
        "ENROLLMENT_SCAN_LIMIT": settings.ENROLLMENT_SCAN_LIMIT,
        "PIPELINE_SCAN_LIMIT": settings.PIPELINE_SCAN_LIMIT,
        "EVENT_SCAN_LIMIT": settings.EVENT_SCAN_LIMIT,
    }
    for name, value in scan_limits.items():
        if value <= 0:
            errors.append(f"{name} must be positive")

    # Production-specific validations
    if settings.is_production and not settings.REQUIRE_ADMIN:
        errors.append("REQUIRE_ADMIN cannot be disabled in production")

    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")

    return True
