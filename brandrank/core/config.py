"""Application configuration helpers."""

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

logger = logging.getLogger(__name__)


class ConfigError(RuntimeError):
    """Raised when mandatory configuration is missing."""


@dataclass(frozen=True)
class Settings:
    database_url: str
    firestore_project_id: str
    firestore_api_key: Optional[str] = None
    brands_collection: str = "brands"
    sync_page_size: int = 300
    related_limit: int = 6
    recent_days: int = 30
    server_port: int = 8080


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    load_dotenv()

    database_url = os.getenv("DATABASE_URL", "")
    firestore_project_id = os.getenv("FIRESTORE_PROJECT_ID", "")
    firestore_api_key = os.getenv("FIRESTORE_API_KEY") or None
    brands_collection = os.getenv("BRANDS_COLLECTION", "").strip() or "brands"
    sync_page_size = int(os.getenv("SYNC_PAGE_SIZE", "300"))
    related_limit = int(os.getenv("RELATED_LIMIT", "6"))
    recent_days = int(os.getenv("RECENT_DAYS", "30"))
    server_port = int(os.getenv("PORT", "8080"))

    if not database_url:
        logger.warning("DATABASE_URL is not set; database operations will fail.")
    if not firestore_project_id:
        logger.warning("FIRESTORE_PROJECT_ID is not configured; catalog sync will fail.")

    return Settings(
        database_url=database_url,
        firestore_project_id=firestore_project_id,
        firestore_api_key=firestore_api_key,
        brands_collection=brands_collection,
        sync_page_size=sync_page_size,
        related_limit=related_limit,
        recent_days=recent_days,
        server_port=server_port,
    )
