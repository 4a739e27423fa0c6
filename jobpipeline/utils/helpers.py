"""Helper utilities."""

import math
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from jobpipeline.config import settings


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the DateTime columns."""
    return datetime.utcnow()


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Convert an aware datetime to naive UTC; naive values are assumed UTC."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def format_hours(delta: timedelta) -> str:
    """Human-readable duration, e.g. '12.5 hours'."""
    return f"{delta.total_seconds() / 3600:.1f} hours"


def percentage(part: int, whole: int) -> float:
    """part/whole as a percentage rounded to two places (0 when whole is 0)."""
    if not whole:
        return 0.0
    return round(part * 100.0 / whole, 2)


def clamp_page(page: int = 1, limit: Optional[int] = None) -> Dict[str, int]:
    """Normalize page/limit and compute the offset."""
    page = max(page or 1, 1)
    limit = limit or settings.DEFAULT_PAGE_SIZE
    limit = max(1, min(limit, settings.MAX_PAGE_SIZE))
    return {"page": page, "limit": limit, "offset": (page - 1) * limit}


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0
