"""
Centralized configuration management.
Uses environment variables with sensible defaults.
"""
from pathlib import Path
from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings with validation."""

    # Clustering defaults
    DEFAULT_EPSILON_KM: float = 1.0
    DEFAULT_MIN_SAMPLES: int = 5
    NEIGHBOR_INDEX: str = "grid"  # or "brute"

    # Logging
    LOG_LEVEL: str = "WARNING"
    LOG_FORMAT: str = "text"  # or "json"
    LOG_DIR: Optional[Path] = None  # None disables the file sink

    class Config:
        env_prefix = "GEOCLUSTER_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


# Global settings instance
settings = Settings()
