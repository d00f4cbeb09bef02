"""
Runtime configuration.

Settings are read from environment variables (optionally loaded from .env).
"""

import os
from dataclasses import dataclass
from typing import Optional

from .env import load_env

NORMALIZE_TITLE_JOB_NAME = "normalize-title"
TITLES_COLLECTION = "titles"
RATING_SOURCE = "IMDB"
DISCOVERY_PAGE_SIZE = 500

ELIGIBLE_TITLE_TYPES = ("movie", "tvSeries", "tvMiniSeries")
SERIES_TITLE_TYPES = ("tvSeries", "tvMiniSeries")


@dataclass
class Settings:
    """Connection and tuning settings for the pipeline."""

    source_database_url: str = "sqlite:///data/source.db"
    catalog_database_url: str = "sqlite:///data/catalog.db"
    redis_host: str = "localhost"
    redis_port: int = 6379
    redis_password: Optional[str] = None
    page_size: int = DISCOVERY_PAGE_SIZE
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, load_dotenv_file: bool = True) -> "Settings":
        """Build settings from environment variables."""
        if load_dotenv_file:
            load_env()
        page_size = int(os.getenv("DISCOVERY_PAGE_SIZE", str(DISCOVERY_PAGE_SIZE)))
        if page_size <= 0:
            raise ValueError(f"DISCOVERY_PAGE_SIZE must be positive, got {page_size}")
        return cls(
            source_database_url=os.getenv("SOURCE_DATABASE_URL", cls.source_database_url),
            catalog_database_url=os.getenv("CATALOG_DATABASE_URL", cls.catalog_database_url),
            redis_host=os.getenv("REDIS_HOST", cls.redis_host),
            redis_port=int(os.getenv("REDIS_PORT", str(cls.redis_port))),
            redis_password=os.getenv("REDIS_PASSWORD") or None,
            page_size=page_size,
            log_level=os.getenv("LOG_LEVEL", cls.log_level).upper(),
        )
