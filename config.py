"""
Spritediff - Sprite Document Comparison
"""
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    # Application Info
    APP_NAME: str = "Spritediff"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    LOG_LEVEL: str = "WARNING"  # Ignored when DEBUG is set (always INFO)

    # Comparison
    COLOR_PROFILE_TOLERANCE: float = 0.001  # Max gamma drift for "same" profile

    # CORS - comma-separated list of allowed origins, or "*" for all
    CORS_ORIGINS: str = "*"

    # Maximum request body size in bytes (32MB default, snapshots embed PNGs)
    MAX_REQUEST_SIZE: int = 32 * 1024 * 1024

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
