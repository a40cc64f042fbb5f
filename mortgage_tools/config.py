"""
Application configuration using Pydantic Settings.
"""

import os
from functools import lru_cache
from pydantic_settings import BaseSettings


def get_env_file() -> str:
    """Determine which env file to use based on environment."""
    env = os.getenv("APP_ENV", "development")
    if env == "production":
        return ".env.production"
    return ".env.development"


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # App settings
    app_name: str = "Mortgage Tools"
    debug: bool = False
    log_level: str = "INFO"
    app_env: str = "development"

    # Simulation limits
    max_term_years: int = 50
    max_horizon_years: int = 50
    payoff_tolerance: float = 0.005

    # Reverse mortgages
    hecm_fha_limit: float = 1209750

    # Presentation
    default_theme: str = "light"

    class Config:
        env_file = get_env_file()
        env_file_encoding = "utf-8"
        extra = "ignore"


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
