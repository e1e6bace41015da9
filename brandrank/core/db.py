"""Database helpers for the brand catalog mirror."""

import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import psycopg2
from psycopg2 import extras, pool

from brandrank.core.config import get_settings

logger = logging.getLogger(__name__)

_connection_pool: Optional[pool.SimpleConnectionPool] = None


def init_pool(minconn: int = 1, maxconn: int = 5) -> pool.SimpleConnectionPool:
    """Initialise and return the shared connection pool."""
    global _connection_pool
    if _connection_pool is None:
        settings = get_settings()
        if not settings.database_url:
            raise RuntimeError("DATABASE_URL is required for database connections")
        _connection_pool = pool.SimpleConnectionPool(
            minconn,
            maxconn,
            dsn=settings.database_url,
            connect_timeout=10,
        )
        logger.info("Database connection pool initialised")
    return _connection_pool


@contextmanager
def get_connection():
    """Context manager yielding a pooled connection."""
    pg_pool = init_pool()
    conn = pg_pool.getconn()
    try:
        yield conn
    finally:
        pg_pool.putconn(conn)


def _prepare_params(row: Dict[str, Any]) -> Dict[str, Any]:
    brand_id = row.get("id")
    if brand_id is not None:
        brand_id = str(brand_id)

    return {
        "id": brand_id,
        "brand_name": row.get("brand_name"),
        "status": row.get("status"),
        "category": row.get("category"),
        "business_model": row.get("business_model"),
        "industry_type": row.get("industry_type"),
        "headquarters": row.get("headquarters"),
        "min_investment": row.get("min_investment"),
        "max_investment": row.get("max_investment"),
        "featured": bool(row.get("featured")),
        "trending": bool(row.get("trending")),
        "verified": bool(row.get("verified")),
        "created_at": row.get("created_at"),
        "raw": extras.Json(row.get("raw") or {}),
        "synced_at": row.get("synced_at"),
    }


_UPSERT_BRAND = """
INSERT INTO brands (
    id,
    brand_name,
    status,
    category,
    business_model,
    industry_type,
    headquarters,
    min_investment,
    max_investment,
    featured,
    trending,
    verified,
    created_at,
    raw,
    synced_at,
    updated_at
) VALUES (
    %(id)s,
    %(brand_name)s,
    %(status)s,
    %(category)s,
    %(business_model)s,
    %(industry_type)s,
    %(headquarters)s,
    %(min_investment)s,
    %(max_investment)s,
    %(featured)s,
    %(trending)s,
    %(verified)s,
    %(created_at)s,
    %(raw)s,
    %(synced_at)s,
    NOW()
)
ON CONFLICT (id) DO UPDATE SET
    brand_name = EXCLUDED.brand_name,
    status = EXCLUDED.status,
    category = EXCLUDED.category,
    business_model = EXCLUDED.business_model,
    industry_type = EXCLUDED.industry_type,
    headquarters = EXCLUDED.headquarters,
    min_investment = EXCLUDED.min_investment,
    max_investment = EXCLUDED.max_investment,
    featured = EXCLUDED.featured,
    trending = EXCLUDED.trending,
    verified = EXCLUDED.verified,
    created_at = COALESCE(EXCLUDED.created_at, brands.created_at),
    raw = EXCLUDED.raw,
    synced_at = COALESCE(EXCLUDED.synced_at, brands.synced_at),
    updated_at = NOW();
"""

_SELECT_COLUMNS = """
SELECT id, brand_name, status, category, business_model, industry_type, headquarters,
       min_investment, max_investment, featured, trending, verified, created_at
FROM brands
"""

_ORDER_BY = " ORDER BY created_at DESC NULLS LAST, id"


def upsert_brand(row: Dict[str, Any]) -> None:
    """Persist a brand dictionary, performing an idempotent upsert."""
    params = _prepare_params(row)
    if not params["id"]:
        raise ValueError("id is required for upsert")

    with get_connection() as conn:
        with conn.cursor() as cur:
            cur.execute(_UPSERT_BRAND, params)
        conn.commit()
        logger.debug("Upserted brand %s", params["id"])


def fetch_brands(status: Optional[str] = "active") -> List[Dict[str, Any]]:
    """Load catalog rows, newest first; ``status=None`` returns every brand."""
    with get_connection() as conn:
        with conn.cursor(cursor_factory=extras.RealDictCursor) as cur:
            if status is None:
                cur.execute(_SELECT_COLUMNS + _ORDER_BY)
            else:
                cur.execute(_SELECT_COLUMNS + " WHERE status = %(status)s" + _ORDER_BY, {"status": status})
            rows = [dict(row) for row in cur.fetchall()]
    logger.info("Loaded %d brands (status=%s)", len(rows), status)
    return rows
