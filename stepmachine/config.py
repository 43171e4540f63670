"""
Configuration settings for the state machine engine.
"""

from pydantic_settings import BaseSettings
from typing import Optional, Union
import logging
import sys


class Settings(BaseSettings):
    """Engine settings with environment variable support."""
    
    # Application
    APP_NAME: str = "stepmachine"
    APP_VERSION: str = "0.1.3"
    
    # Retry / backoff
    DEFAULT_RETRIES: int = 5  # Retry budget when none is given
    MAX_RETRIES: int = 5  # Budgets above this only emit a warning
    BACKOFF_BASE_DELAY: float = 1.0  # Seconds before the first retry
    
    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    
    class Config:
        env_file = ".env"
        case_sensitive = True


# Global settings instance
settings = Settings()


def configure_logging(level: Optional[Union[str, int]] = None) -> None:
    """
    Configure root logging on stdout.

    Uses ``settings.LOG_LEVEL`` (overridable through the LOG_LEVEL
    environment variable) unless a level is given explicitly.
    """
    if level is None:
        level = settings.LOG_LEVEL
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    
    logging.basicConfig(
        level=level,
        format=settings.LOG_FORMAT,
        stream=sys.stdout,
    )
