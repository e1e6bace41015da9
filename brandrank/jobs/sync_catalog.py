"""CLI job that mirrors the Firestore brand catalog into PostgreSQL."""

import argparse
import logging
from datetime import datetime, timezone
from typing import Optional

from brandrank.core.config import ConfigError, get_settings
from brandrank.core.db import init_pool, upsert_brand
from brandrank.etl.transform import to_brand_row
from brandrank.vendors import firestore

logger = logging.getLogger(__name__)


def sync_catalog(*, project_id: Optional[str], collection: str, page_size: int) -> int:
    """Fetch every brand document and upsert it; returns the number of rows written."""
    if not project_id:
        raise ConfigError("FIRESTORE_PROJECT_ID is required to sync the brand catalog")

    settings = get_settings()
    init_pool()

    synced_at = datetime.now(timezone.utc)
    logger.info("Syncing collection=%s from project=%s", collection, project_id)

    written = 0
    skipped = 0
    for document in firestore.iter_documents(
        project_id,
        collection,
        api_key=settings.firestore_api_key,
        page_size=page_size,
    ):
        row = to_brand_row(document)
        if not row.get("id"):
            logger.debug("Skipping document without name: %s", document)
            skipped += 1
            continue
        row["synced_at"] = synced_at

        try:
            upsert_brand(row)
        except Exception as exc:  # noqa: BLE001
            logger.error("Failed to upsert brand %s: %s", row["id"], exc)
            skipped += 1
            continue
        written += 1

    logger.info("Completed sync: written=%d skipped=%d", written, skipped)
    return written


def build_parser() -> argparse.ArgumentParser:
    settings = get_settings()
    parser = argparse.ArgumentParser(description="Mirror the Firestore brand catalog into PostgreSQL")
    parser.add_argument(
        "--project",
        dest="project_id",
        default=settings.firestore_project_id,
        help="Firestore project id",
    )
    parser.add_argument(
        "--collection",
        dest="collection",
        default=settings.brands_collection,
        help="Firestore collection holding brand documents",
    )
    parser.add_argument(
        "--page-size",
        dest="page_size",
        type=int,
        default=settings.sync_page_size,
        help="Documents requested per page",
    )
    return parser


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s - %(message)s")
    parser = build_parser()
    args = parser.parse_args()

    sync_catalog(
        project_id=args.project_id,
        collection=args.collection,
        page_size=args.page_size,
    )


if __name__ == "__main__":
    main()
