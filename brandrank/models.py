"""Core data models shared by the brand catalog ranker and its service."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Optional


@dataclass(slots=True)
class Brand:
    """Normalized snapshot of a franchise brand from the catalog."""

    id: str
    brand_name: Optional[str] = None
    status: Optional[str] = None
    category: Optional[str] = None
    business_model: Optional[str] = None
    industry_type: Optional[str] = None
    headquarters: Optional[str] = None
    min_investment: Optional[float] = None
    max_investment: Optional[float] = None
    featured: bool = False
    trending: bool = False
    verified: bool = False
    created_at: Optional[datetime] = None
    similarity_score: Optional[int] = None
    raw: Optional[Dict[str, Any]] = field(default=None, repr=False, compare=False)
