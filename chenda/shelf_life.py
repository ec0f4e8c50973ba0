from __future__ import annotations

"""
Shelf-life arithmetic for listings.

A listing states its total shelf life and how many days of it were already
used when it was listed; from that we derive remaining days, a freshness
percent and an expiration date. is_expired() is the predicate the filter
stage consumes.
"""

import math
from datetime import datetime, timedelta
from typing import Any, Dict

from . import config
from .errors import InvalidArgumentError
from .normalize import round_half_away


def _number(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or math.isnan(value):
        raise InvalidArgumentError(f"{name} must be a number, got {value!r}", value=value, constraint="numeric")
    return float(value)


def remaining_shelf_life_days(total_shelf_life_days: float, days_already_used: float) -> float:
    total = _number(total_shelf_life_days, "total_shelf_life_days")
    used = _number(days_already_used, "days_already_used")
    if total <= 0:
        raise InvalidArgumentError(
            f"total_shelf_life_days must be positive, got {total_shelf_life_days}",
            value=total_shelf_life_days,
            constraint="total_shelf_life_days > 0",
        )
    if used < 0:
        raise InvalidArgumentError(
            f"days_already_used cannot be negative, got {days_already_used}",
            value=days_already_used,
            constraint="days_already_used >= 0",
        )
    if used > total:
        raise InvalidArgumentError(
            f"days_already_used ({days_already_used}) cannot exceed "
            f"total_shelf_life_days ({total_shelf_life_days})",
            value=days_already_used,
            constraint="days_already_used <= total_shelf_life_days",
        )
    return total - used


def freshness_percent(
    total_shelf_life_days: float,
    days_already_used: float,
    decimals: int = config.SCORE_DECIMALS,
) -> float:
    remaining = remaining_shelf_life_days(total_shelf_life_days, days_already_used)
    return round_half_away(remaining / float(total_shelf_life_days) * 100.0, decimals)


def expiration_date(listed_date: datetime, remaining_days: float) -> datetime:
    if not isinstance(listed_date, datetime):
        raise InvalidArgumentError(
            f"listed_date must be a datetime, got {listed_date!r}", value=listed_date, constraint="datetime"
        )
    days = _number(remaining_days, "remaining_days")
    if days < 0:
        raise InvalidArgumentError(
            f"remaining_days cannot be negative, got {remaining_days}",
            value=remaining_days,
            constraint="remaining_days >= 0",
        )
    return listed_date + timedelta(days=days)


def _is_aware(dt: datetime) -> bool:
    return dt.tzinfo is not None and dt.utcoffset() is not None


def check_comparable(a: datetime, b: datetime, what: str = "timestamps") -> None:
    """Naive and timezone-aware datetimes cannot be ordered against each other."""
    if _is_aware(a) != _is_aware(b):
        raise InvalidArgumentError(
            f"{what} mix naive and timezone-aware datetimes ({a!r} vs {b!r})",
            value=(a, b),
            constraint="both naive or both timezone-aware",
        )


def is_expired(expiration: datetime, now: datetime) -> bool:
    """Strictly after the expiration instant counts as expired."""
    check_comparable(expiration, now, "expiration_date and now")
    return now > expiration


def shelf_life_metrics(
    total_shelf_life_days: float,
    days_already_used: float,
    listed_date: datetime,
    now: datetime,
) -> Dict[str, Any]:
    remaining = remaining_shelf_life_days(total_shelf_life_days, days_already_used)
    exp = expiration_date(listed_date, remaining)
    return {
        "remaining_shelf_life_days": remaining,
        "freshness_percent": freshness_percent(total_shelf_life_days, days_already_used),
        "expiration_date": exp,
        "is_expired": is_expired(exp, now),
    }
