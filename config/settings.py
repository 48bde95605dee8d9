"""Configuration management using pydantic-settings."""
import logging
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Library defaults loaded from TIERCACHE_* environment variables."""

    # Staleness applied when a client does not configure one
    # None means entries never go stale
    default_stale_time_ms: Optional[float] = None

    # In-process recency cache
    lru_max_size: int = 100

    # Durable sqlite tier
    sqlite_path: Path = Path("./cache/tiercache.db")

    # Logging
    log_level: str = "INFO"

    class Config:
        env_prefix = "TIERCACHE_"
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"


settings = Settings()


def configure_logging(level: Optional[str] = None) -> None:
    """Apply the configured log level to the tiercache loggers."""
    logging.basicConfig(level=logging.INFO)
    logging.getLogger("tiercache").setLevel((level or settings.log_level).upper())
