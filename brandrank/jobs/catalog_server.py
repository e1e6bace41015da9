"""HTTP entrypoint serving related brand lookups from the catalog mirror."""

from __future__ import annotations

import logging
import math
import os
from typing import Any, Callable, Dict, List, Optional

from flask import Flask, current_app, jsonify, request

from brandrank.core import related
from brandrank.core.config import get_settings
from brandrank.core.db import fetch_brands
from brandrank.core.dedup import RequestDeduplicator
from brandrank.etl.transform import to_brand, to_payload
from brandrank.models import Brand

# ---------- Logging ----------
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)

CATALOG_STATUS = "active"

CatalogLoader = Callable[[], List[Brand]]


class InvalidQuery(ValueError):
    """Raised for query parameters that cannot be used."""


def load_catalog() -> List[Brand]:
    return [to_brand(row) for row in fetch_brands(status=CATALOG_STATUS)]


# ---------- App factory ----------


def create_app(
    catalog_loader: Optional[CatalogLoader] = None,
    deduplicator: Optional[RequestDeduplicator] = None,
) -> Flask:
    """Build the Flask app; each app owns its loader and request deduplicator."""
    app = Flask(__name__)
    app.extensions["brand_catalog_loader"] = catalog_loader or load_catalog
    app.extensions["brand_deduplicator"] = deduplicator or RequestDeduplicator()

    @app.errorhandler(InvalidQuery)
    def handle_invalid_query(exc: InvalidQuery) -> Any:
        return jsonify({"error": str(exc)}), 400

    @app.get("/")
    def root() -> Any:
        """Simple root to avoid 404 on GET /"""
        return "ok", 200

    @app.get("/healthz")
    def healthcheck() -> Any:
        """Lightweight health endpoint; reads settings only, never the database."""
        settings = get_settings()
        return (
            jsonify(
                {
                    "status": "ok",
                    "server_port_config": getattr(settings, "server_port", None),
                    "revision": os.getenv("K_REVISION", "unknown"),
                    "in_flight": _deduplicator().status()["size"],
                }
            ),
            200,
        )

    @app.get("/brands/trending")
    def trending_brands() -> Any:
        limit = _int_arg("limit", get_settings().related_limit)
        catalog = _catalog()
        if catalog is None:
            return _load_failed()
        brands = related.rank_trending(catalog, exclude_id=request.args.get("exclude"), limit=limit)
        return _respond(brands)

    @app.get("/brands/recent")
    def recent_brands() -> Any:
        settings = get_settings()
        limit = _int_arg("limit", settings.related_limit)
        days = _int_arg("days", settings.recent_days)
        catalog = _catalog()
        if catalog is None:
            return _load_failed()
        brands = related.rank_recent(
            catalog,
            exclude_id=request.args.get("exclude"),
            limit=limit,
            recent_days=days,
        )
        return _respond(brands)

    @app.get("/brands/<brand_id>/related")
    def related_brands(brand_id: str) -> Any:
        limit = _int_arg("limit", get_settings().related_limit)
        catalog = _catalog()
        if catalog is None:
            return _load_failed()
        reference = _find(catalog, brand_id)
        if reference is None:
            return _not_found(brand_id)
        return _respond(related.rank_related(reference, catalog, limit=limit))

    @app.get("/brands/<brand_id>/same-category")
    def same_category_brands(brand_id: str) -> Any:
        limit = _int_arg("limit", get_settings().related_limit)
        catalog = _catalog()
        if catalog is None:
            return _load_failed()
        reference = _find(catalog, brand_id)
        if reference is None:
            return _not_found(brand_id)
        brands = related.filter_by_category(reference.category, catalog, exclude_id=reference.id, limit=limit)
        return _respond(brands)

    @app.get("/brands/<brand_id>/investment-range")
    def investment_range_brands(brand_id: str) -> Any:
        limit = _int_arg("limit", get_settings().related_limit)
        min_raw = _float_arg("min")
        max_raw = _float_arg("max")
        catalog = _catalog()
        if catalog is None:
            return _load_failed()
        reference = _find(catalog, brand_id)
        if reference is None:
            return _not_found(brand_id)

        low = min_raw if min_raw is not None else reference.min_investment
        high = max_raw if max_raw is not None else reference.max_investment
        if high is None:
            high = low
        if low is None or high is None:
            return jsonify({"error": "investment range is unknown; pass min and max"}), 400
        if high < low:
            return jsonify({"error": "max must not be below min"}), 400

        brands = related.filter_by_investment_range(low, high, catalog, exclude_id=reference.id, limit=limit)
        return _respond(brands)

    return app


# ---------- Internals ----------


def _deduplicator() -> RequestDeduplicator:
    return current_app.extensions["brand_deduplicator"]


def _catalog() -> Optional[List[Brand]]:
    loader = current_app.extensions["brand_catalog_loader"]
    try:
        return _deduplicator().run(f"brands:{CATALOG_STATUS}", loader)
    except Exception as exc:  # noqa: BLE001
        logger.exception("Catalog load failed: %s", exc)
        return None


def _find(catalog: List[Brand], brand_id: str) -> Optional[Brand]:
    for brand in catalog:
        if brand.id == brand_id:
            return brand
    return None


def _int_arg(name: str, default: int) -> int:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except (TypeError, ValueError):
        raise InvalidQuery(f"{name} must be numeric")
    if value <= 0:
        raise InvalidQuery(f"{name} must be positive")
    return value


def _float_arg(name: str) -> Optional[float]:
    raw = request.args.get(name)
    if raw is None or raw == "":
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        raise InvalidQuery(f"{name} must be numeric")
    if not math.isfinite(value):
        raise InvalidQuery(f"{name} must be finite")
    return value


def _respond(brands: List[Brand]) -> Any:
    return jsonify({"data": [to_payload(brand) for brand in brands]}), 200


def _not_found(brand_id: str) -> Any:
    return jsonify({"error": f"brand {brand_id} not found"}), 404


def _load_failed() -> Any:
    return jsonify({"error": "catalog unavailable"}), 500


app = create_app()


def main() -> None:
    port = get_settings().server_port
    logger.info("[BOOT] Binding on 0.0.0.0:%d", port)
    app.run(host="0.0.0.0", port=port, threaded=True)


if __name__ == "__main__":
    main()
