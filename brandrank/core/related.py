"""Related brand lookups: similarity scoring and the catalog side views."""

import logging
import math
from dataclasses import replace
from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional

from brandrank.models import Brand

logger = logging.getLogger(__name__)

CATEGORY_POINTS = 40
BUSINESS_MODEL_POINTS = 20
INVESTMENT_POINTS = 20
INDUSTRY_POINTS = 10
HEADQUARTERS_POINTS = 10

INVESTMENT_BUFFER_RATIO = 0.3
DEFAULT_LIMIT = 6
DEFAULT_RECENT_DAYS = 30


def _same(left: Optional[str], right: Optional[str]) -> bool:
    return left is not None and right is not None and left == right


def _investment_credit(left: Optional[float], right: Optional[float]) -> float:
    if left is None or right is None:
        return 0.0
    avg = (left + right) / 2
    if avg == 0:
        return 0.0
    fraction = max(0.0, 1 - abs(left - right) / avg)
    return fraction * INVESTMENT_POINTS


def similarity_score(reference: Brand, candidate: Brand) -> int:
    """Score attribute overlap between two brands on a 0-100 scale.

    Points are additive: category 40, business model 20, investment
    closeness up to 20, industry 10, headquarters 10. Missing values never
    match. The total is rounded half up.
    """
    score = 0.0
    if _same(reference.category, candidate.category):
        score += CATEGORY_POINTS
    if _same(reference.business_model, candidate.business_model):
        score += BUSINESS_MODEL_POINTS
    score += _investment_credit(reference.min_investment, candidate.min_investment)
    if _same(reference.industry_type, candidate.industry_type):
        score += INDUSTRY_POINTS
    if _same(reference.headquarters, candidate.headquarters):
        score += HEADQUARTERS_POINTS
    return int(math.floor(score + 0.5))


def rank_related(
    reference: Optional[Brand],
    candidates: Optional[Iterable[Brand]],
    limit: int = DEFAULT_LIMIT,
) -> List[Brand]:
    """Return up to ``limit`` candidates most similar to ``reference``.

    Each returned brand is a copy carrying ``similarity_score``. Brands with
    no similarity at all are left out, and ties keep their catalog order.
    """
    if reference is None or not candidates:
        return []

    scored = []
    for candidate in candidates:
        if candidate.id == reference.id:
            continue
        score = similarity_score(reference, candidate)
        if score > 0:
            scored.append(replace(candidate, similarity_score=score))

    scored.sort(key=lambda brand: brand.similarity_score, reverse=True)
    logger.debug("Ranked %d related brands for %s", len(scored), reference.id)
    return scored[:limit]


def filter_by_category(
    category: Optional[str],
    candidates: Optional[Iterable[Brand]],
    exclude_id: Optional[str] = None,
    limit: int = DEFAULT_LIMIT,
) -> List[Brand]:
    matches = [
        brand
        for brand in candidates or []
        if _same(brand.category, category) and brand.id != exclude_id
    ]
    return matches[:limit]


def filter_by_investment_range(
    min_investment: float,
    max_investment: float,
    candidates: Optional[Iterable[Brand]],
    exclude_id: Optional[str] = None,
    limit: int = DEFAULT_LIMIT,
) -> List[Brand]:
    """Brands whose minimum investment falls in the range widened by 30% of its width.

    A zero minimum investment is a placeholder and never matches.
    """
    buffer = (max_investment - min_investment) * INVESTMENT_BUFFER_RATIO
    lower = min_investment - buffer
    upper = max_investment + buffer

    matches = []
    for brand in candidates or []:
        if brand.id == exclude_id or not brand.min_investment:
            continue
        if lower <= brand.min_investment <= upper:
            matches.append(brand)
    return matches[:limit]


def _trending_weight(brand: Brand) -> int:
    return 3 * bool(brand.featured) + 2 * bool(brand.trending) + bool(brand.verified)


def rank_trending(
    candidates: Optional[Iterable[Brand]],
    exclude_id: Optional[str] = None,
    limit: int = DEFAULT_LIMIT,
) -> List[Brand]:
    """Featured, trending or verified brands, in that order of priority."""
    popular = [
        brand
        for brand in candidates or []
        if brand.id != exclude_id and (brand.featured or brand.trending or brand.verified)
    ]
    popular.sort(key=_trending_weight, reverse=True)
    return popular[:limit]


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def rank_recent(
    candidates: Optional[Iterable[Brand]],
    exclude_id: Optional[str] = None,
    limit: int = DEFAULT_LIMIT,
    recent_days: int = DEFAULT_RECENT_DAYS,
    now: Optional[datetime] = None,
) -> List[Brand]:
    """Brands created within the last ``recent_days``, newest first."""
    reference_time = _as_utc(now or datetime.now(timezone.utc))
    try:
        cutoff = reference_time - timedelta(days=recent_days)
    except OverflowError:
        # window reaches past the representable calendar
        edge = datetime.min if recent_days > 0 else datetime.max
        cutoff = edge.replace(tzinfo=timezone.utc)

    recent = [
        brand
        for brand in candidates or []
        if brand.id != exclude_id
        and brand.created_at is not None
        and _as_utc(brand.created_at) >= cutoff
    ]
    recent.sort(key=lambda brand: _as_utc(brand.created_at), reverse=True)
    return recent[:limit]
