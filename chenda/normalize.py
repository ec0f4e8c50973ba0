from __future__ import annotations

"""
Score normalisation: raw metrics -> 0-100 scores.

Every caller that needs a proximity or freshness score goes through the
functions here, so there is exactly one definition of each scale.

Public helpers:

* normalize_proximity(distance_km, max_radius_km, decimals) -> float
    100 at distance 0, 0 at or beyond the radius, linear in between.

* normalize_freshness(freshness_percent, decimals) -> float
    Validated identity on the 0-100 range.

* normalize_scores(...) / normalize_batch(...)
    Both scores at once, for a single candidate or a list of them.
"""

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, List, Sequence, Tuple

from loguru import logger

from . import config
from .config import Candidate
from .errors import InvalidArgumentError, MissingFieldError


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def round_half_away(value: float, decimals: int = config.SCORE_DECIMALS) -> float:
    """
    Round half away from zero at a fixed number of decimals.

    Goes through the decimal string form so 0.125 -> 0.13 rather than
    float round()'s banker's / binary artefacts.
    """
    if decimals < 0:
        raise InvalidArgumentError(
            f"decimals must be >= 0, got {decimals}", value=decimals, constraint="decimals >= 0"
        )
    quantum = Decimal(1).scaleb(-decimals)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def _as_number(value: Any, name: str) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidArgumentError(
            f"{name} must be a number, got {value!r}", value=value, constraint="numeric"
        )
    x = float(value)
    if math.isnan(x):
        raise InvalidArgumentError(f"{name} must not be NaN", value=value, constraint="not NaN")
    return x


def _check_radius(max_radius_km: Any) -> float:
    r = _as_number(max_radius_km, "max_radius_km")
    if r <= 0:
        raise InvalidArgumentError(
            f"max_radius_km must be positive, got {max_radius_km}",
            value=max_radius_km,
            constraint="max_radius_km > 0",
        )
    return r


# ---------------------------------------------------------------------------
# Single-value normalisers
# ---------------------------------------------------------------------------

def normalize_proximity(
    distance_km: float,
    max_radius_km: float,
    decimals: int = config.SCORE_DECIMALS,
) -> float:
    d = _as_number(distance_km, "distance_km")
    if d < 0:
        raise InvalidArgumentError(
            f"distance_km cannot be negative, got {distance_km}",
            value=distance_km,
            constraint="distance_km >= 0",
        )
    r = _check_radius(max_radius_km)

    if d >= r:
        return 0.0
    if d == 0:
        return 100.0
    return round_half_away(100.0 * (1.0 - d / r), decimals)


def normalize_freshness(
    freshness_percent: float,
    decimals: int = config.SCORE_DECIMALS,
) -> float:
    # identity today; kept as the single place a non-linear curve would go
    f = _as_number(freshness_percent, "freshness_percent")
    if f < config.SCORE_MIN or f > config.SCORE_MAX:
        raise InvalidArgumentError(
            f"freshness_percent must be between 0 and 100, got {freshness_percent}",
            value=freshness_percent,
            constraint="0 <= freshness_percent <= 100",
        )
    return round_half_away(f, decimals)


# ---------------------------------------------------------------------------
# Pair / batch
# ---------------------------------------------------------------------------

def normalize_scores(
    distance_km: float,
    freshness_percent: float,
    max_radius_km: float,
    decimals: int = config.SCORE_DECIMALS,
) -> Tuple[float, float]:
    """Return (proximity_score, freshness_score)."""
    return (
        normalize_proximity(distance_km, max_radius_km, decimals),
        normalize_freshness(freshness_percent, decimals),
    )


def normalize_candidate(
    candidate: Candidate,
    max_radius_km: float,
    decimals: int = config.SCORE_DECIMALS,
) -> Candidate:
    """Copy of `candidate` with proximity_score / freshness_score set from raw metrics."""
    if candidate.distance_km is None:
        raise MissingFieldError(candidate.id, "distance_km", stage="normalize")
    if candidate.freshness_percent is None:
        raise MissingFieldError(candidate.id, "freshness_percent", stage="normalize")

    ps, fs = normalize_scores(
        candidate.distance_km, candidate.freshness_percent, max_radius_km, decimals
    )
    return candidate.model_copy(update={"proximity_score": ps, "freshness_score": fs})


def normalize_batch(
    candidates: Sequence[Candidate],
    max_radius_km: float,
    decimals: int = config.SCORE_DECIMALS,
    keep_existing: bool = False,
) -> List[Candidate]:
    """
    Normalise every candidate against one radius.

    With keep_existing=True, candidates that already carry both scores are
    passed through untouched. The input sequence is never modified.
    """
    _check_radius(max_radius_km)

    out: List[Candidate] = []
    reused = 0
    for c in candidates:
        if keep_existing and c.has_scores():
            out.append(c)
            reused += 1
            continue
        out.append(normalize_candidate(c, max_radius_km, decimals))

    logger.debug(
        "normalize_batch: {} candidates ({} reused precomputed scores), radius={} km",
        len(out),
        reused,
        max_radius_km,
    )
    return out

