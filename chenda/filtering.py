from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from loguru import logger

from .config import BuyerPreferences, Candidate, FilterConstraints, FilterStats
from .errors import InvalidArgumentError, MissingFieldError
from .pipeline_types import CandidateCheck, FilterOutcome
from .shelf_life import check_comparable
from .shelf_life import is_expired as default_is_expired

ExpiryCheck = Callable[[datetime, datetime], bool]


# ---------------------------------------------------------------------------
# Constraint validation
# ---------------------------------------------------------------------------

def _validate_constraints(constraints: FilterConstraints) -> None:
    r = constraints.max_radius_km
    if r is not None and (math.isnan(r) or r <= 0):
        raise InvalidArgumentError(
            f"max_radius_km must be positive, got {r}", value=r, constraint="max_radius_km > 0"
        )
    m = constraints.min_freshness_percent
    if m is not None and (math.isnan(m) or m < 0 or m > 100):
        raise InvalidArgumentError(
            f"min_freshness_percent must be between 0 and 100, got {m}",
            value=m,
            constraint="0 <= min_freshness_percent <= 100",
        )


# ---------------------------------------------------------------------------
# Single stages
# ---------------------------------------------------------------------------

# raw metric -> allowed closed range
_METRIC_RANGES: Dict[str, Tuple[float, float]] = {
    "distance_km": (0.0, math.inf),
    "freshness_percent": (0.0, 100.0),
}


def read_metric(c: Candidate, attr: str, stage: str) -> Any:
    """
    Value of `attr` on `c`, checked before any stage compares or sorts on it.

    Missing -> MissingFieldError. NaN, a negative distance or a freshness
    outside 0-100 -> InvalidArgumentError.
    """
    value = getattr(c, attr, None)
    if value is None:
        raise MissingFieldError(c.id, attr, stage=stage)
    if isinstance(value, float) and math.isnan(value):
        raise InvalidArgumentError(
            f"candidate {c.id!r}: {attr} must not be NaN", value=value, constraint="not NaN"
        )
    if attr in _METRIC_RANGES:
        lo, hi = _METRIC_RANGES[attr]
        if value < lo or value > hi:
            raise InvalidArgumentError(
                f"candidate {c.id!r}: {attr} must be between {lo:g} and {hi:g}, got {value}",
                value=value,
                constraint=f"{lo:g} <= {attr} <= {hi:g}",
            )
    return value


def _is_expired(c: Candidate, now: datetime, check: ExpiryCheck) -> bool:
    expiration = read_metric(c, "expiration_date", "expiration filter")
    check_comparable(expiration, now, f"candidate {c.id!r} expiration_date and now")
    return check(expiration, now)


def _outside_radius(c: Candidate, max_radius_km: float) -> bool:
    # exactly at the radius passes
    return read_metric(c, "distance_km", "radius filter") > max_radius_km


def _too_stale(c: Candidate, min_freshness_percent: float) -> bool:
    return read_metric(c, "freshness_percent", "freshness filter") < min_freshness_percent


def filter_by_radius(candidates: Sequence[Candidate], max_radius_km: float) -> List[Candidate]:
    """Keep candidates with distance_km <= max_radius_km."""
    if max_radius_km is None or math.isnan(max_radius_km) or max_radius_km <= 0:
        raise InvalidArgumentError(
            f"max_radius_km must be positive, got {max_radius_km}",
            value=max_radius_km,
            constraint="max_radius_km > 0",
        )
    return [c for c in candidates if not _outside_radius(c, max_radius_km)]


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

def apply_filters(
    candidates: Sequence[Candidate],
    constraints: FilterConstraints,
    is_expired: ExpiryCheck = default_is_expired,
) -> FilterOutcome:
    """
    Run the hard-constraint stages in a fixed order: expiration, radius,
    freshness. A candidate is counted only against the first stage that
    removes it. The input sequence is left untouched.
    """
    _validate_constraints(constraints)

    survivors: List[Candidate] = list(candidates)
    initial = len(survivors)
    by_expiration = by_radius = by_freshness = 0

    if constraints.exclude_expired:
        kept = [c for c in survivors if not _is_expired(c, constraints.now, is_expired)]
        by_expiration = len(survivors) - len(kept)
        survivors = kept

    if constraints.max_radius_km is not None:
        kept = [c for c in survivors if not _outside_radius(c, constraints.max_radius_km)]
        by_radius = len(survivors) - len(kept)
        survivors = kept

    if constraints.min_freshness_percent is not None:
        kept = [c for c in survivors if not _too_stale(c, constraints.min_freshness_percent)]
        by_freshness = len(survivors) - len(kept)
        survivors = kept

    stats = FilterStats(
        initial_count=initial,
        removed_by_expiration=by_expiration,
        removed_by_radius=by_radius,
        removed_by_freshness=by_freshness,
        final_count=len(survivors),
    )
    logger.debug(
        "apply_filters: {} -> {} (expired={}, radius={}, freshness={})",
        stats.initial_count,
        stats.final_count,
        stats.removed_by_expiration,
        stats.removed_by_radius,
        stats.removed_by_freshness,
    )
    return FilterOutcome(filtered=survivors, stats=stats)


# ---------------------------------------------------------------------------
# Diagnostics
# ---------------------------------------------------------------------------

def check_candidate(
    candidate: Candidate,
    constraints: FilterConstraints,
    is_expired: ExpiryCheck = default_is_expired,
) -> CandidateCheck:
    """Every constraint this candidate fails, not just the first one."""
    _validate_constraints(constraints)
    reasons: List[str] = []

    if constraints.exclude_expired and _is_expired(candidate, constraints.now, is_expired):
        reasons.append("expired")
    if constraints.max_radius_km is not None and _outside_radius(candidate, constraints.max_radius_km):
        reasons.append(
            f"beyond max radius ({candidate.distance_km} km > {constraints.max_radius_km} km)"
        )
    if constraints.min_freshness_percent is not None and _too_stale(
        candidate, constraints.min_freshness_percent
    ):
        reasons.append(
            f"below min freshness ({candidate.freshness_percent:.1f}% < "
            f"{constraints.min_freshness_percent}%)"
        )

    return CandidateCheck(passes=not reasons, reasons=reasons, candidate_id=candidate.id)


def _pct(part: int, whole: int) -> float:
    return round(part / whole * 100.0, 1) if whole else 0.0


def filter_summary(stats: FilterStats) -> Dict[str, Any]:
    n = stats.initial_count
    removed = stats.total_removed
    removal_rate = _pct(removed, n)
    return {
        "message": (
            f"Filtered {n} candidates -> {stats.final_count} results "
            f"({removed} removed, {removal_rate}% removal rate)"
        ),
        "total_removed": removed,
        "removal_rate": removal_rate,
        "retention_rate": _pct(stats.final_count, n),
        "breakdown": {
            "expired": f"{stats.removed_by_expiration} expired ({_pct(stats.removed_by_expiration, n)}%)",
            "radius": f"{stats.removed_by_radius} out of range ({_pct(stats.removed_by_radius, n)}%)",
            "freshness": (
                f"{stats.removed_by_freshness} not fresh enough "
                f"({_pct(stats.removed_by_freshness, n)}%)"
            ),
        },
    }


# ---------------------------------------------------------------------------
# Buyer helpers
# ---------------------------------------------------------------------------

def constraints_from_preferences(
    prefs: BuyerPreferences,
    now: datetime,
    exclude_expired: bool = True,
    max_radius_km: Optional[float] = None,
) -> FilterConstraints:
    return FilterConstraints(
        max_radius_km=max_radius_km if max_radius_km is not None else prefs.max_radius_km,
        min_freshness_percent=prefs.min_freshness_percent,
        exclude_expired=exclude_expired,
        now=now,
    )


def filter_for_buyer(
    candidates: Sequence[Candidate],
    prefs: BuyerPreferences,
    now: datetime,
    exclude_expired: bool = True,
) -> FilterOutcome:
    return apply_filters(candidates, constraints_from_preferences(prefs, now, exclude_expired))
