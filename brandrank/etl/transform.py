"""Utilities for transforming Firestore brand documents into rows and records."""

import logging
import re
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, Optional

from brandrank.models import Brand

logger = logging.getLogger(__name__)

# Firestore field name -> brands table column
_FIELD_COLUMNS = {
    "brandName": "brand_name",
    "status": "status",
    "category": "category",
    "businessModel": "business_model",
    "industryType": "industry_type",
    "headquarters": "headquarters",
    "minInvestment": "min_investment",
    "maxInvestment": "max_investment",
    "featured": "featured",
    "trending": "trending",
    "verified": "verified",
}
_FLAG_COLUMNS = ("featured", "trending", "verified")
_NUMBER_COLUMNS = ("min_investment", "max_investment")
# Firestore emits nanosecond precision; datetime keeps microseconds.
_EXCESS_FRACTION = re.compile(r"(\.\d{6})\d+")


def decode_value(value: Dict[str, Any]) -> Any:
    """Convert a Firestore REST typed value into a plain Python value."""
    if not value:
        return None
    if "nullValue" in value:
        return None
    if "stringValue" in value:
        return value["stringValue"]
    if "booleanValue" in value:
        return bool(value["booleanValue"])
    if "integerValue" in value:
        return int(value["integerValue"])
    if "doubleValue" in value:
        return float(value["doubleValue"])
    if "timestampValue" in value:
        return parse_timestamp(value["timestampValue"])
    if "referenceValue" in value:
        return value["referenceValue"]
    if "geoPointValue" in value:
        point = value["geoPointValue"]
        return {"latitude": point.get("latitude"), "longitude": point.get("longitude")}
    if "mapValue" in value:
        return decode_fields(value["mapValue"].get("fields", {}))
    if "arrayValue" in value:
        return [decode_value(item) for item in value["arrayValue"].get("values", [])]
    logger.debug("Unsupported Firestore value: %s", value)
    return None


def decode_fields(fields: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    return {name: decode_value(value) for name, value in (fields or {}).items()}


def parse_timestamp(value: Any) -> Optional[datetime]:
    """Best-effort conversion of stored timestamps to an aware UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)
    if isinstance(value, dict):
        seconds = value.get("_seconds", value.get("seconds"))
        if seconds is None:
            return None
        nanos = value.get("_nanoseconds", value.get("nanos")) or 0
        return datetime.fromtimestamp(int(seconds) + int(nanos) / 1e9, tz=timezone.utc)
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(_EXCESS_FRACTION.sub(r"\1", value.strip()))
        except ValueError:
            logger.debug("Unable to parse timestamp %r", value)
            return None
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return None


def _to_number(value: Any) -> Optional[float]:
    if value is None or value == "" or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        logger.debug("Ignoring non-numeric investment value %r", value)
        return None


def _document_id(document: Dict[str, Any]) -> Optional[str]:
    name = document.get("name") or ""
    return name.rsplit("/", 1)[-1] or None


def to_brand_row(document: Dict[str, Any]) -> Dict[str, Any]:
    """Flatten a Firestore brand document into a ``brands`` table row."""
    fields = decode_fields(document.get("fields", {}))

    row: Dict[str, Any] = {"id": _document_id(document)}
    for field_name, column in _FIELD_COLUMNS.items():
        row[column] = fields.get(field_name)

    for column in _NUMBER_COLUMNS:
        row[column] = _to_number(row[column])
    for column in _FLAG_COLUMNS:
        row[column] = bool(row[column])

    row["created_at"] = parse_timestamp(fields.get("createdAt")) or parse_timestamp(document.get("createTime"))
    row["raw"] = {key: _jsonable(value) for key, value in fields.items()}
    return row


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, list):
        return [_jsonable(item) for item in value]
    return value


def to_brand(row: Dict[str, Any]) -> Brand:
    """Build a ``Brand`` from a database row."""
    return Brand(
        id=str(row["id"]),
        brand_name=row.get("brand_name"),
        status=row.get("status"),
        category=row.get("category"),
        business_model=row.get("business_model"),
        industry_type=row.get("industry_type"),
        headquarters=row.get("headquarters"),
        min_investment=_to_number(row.get("min_investment")),
        max_investment=_to_number(row.get("max_investment")),
        featured=bool(row.get("featured")),
        trending=bool(row.get("trending")),
        verified=bool(row.get("verified")),
        created_at=parse_timestamp(row.get("created_at")),
        raw=row.get("raw"),
    )


def _plain_number(value: Optional[float]) -> Any:
    if isinstance(value, Decimal):
        value = float(value)
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def to_payload(brand: Brand) -> Dict[str, Any]:
    """Serialise a ``Brand`` using the website's camelCase field names."""
    payload = {
        "id": brand.id,
        "brandName": brand.brand_name,
        "status": brand.status,
        "category": brand.category,
        "businessModel": brand.business_model,
        "industryType": brand.industry_type,
        "headquarters": brand.headquarters,
        "minInvestment": _plain_number(brand.min_investment),
        "maxInvestment": _plain_number(brand.max_investment),
        "featured": brand.featured,
        "trending": brand.trending,
        "verified": brand.verified,
        "createdAt": brand.created_at.isoformat() if brand.created_at else None,
    }
    if brand.similarity_score is not None:
        payload["similarityScore"] = brand.similarity_score
    return payload
