# chenda/rank.py
from __future__ import annotations

from typing import Dict, List, Optional, Sequence

import numpy as np
from loguru import logger

from . import config
from .combine import combine_batch
from .config import Candidate, FilterConstraints, RankingResult, WeightPair
from .constants import SORT_ASC, SORT_DESC, SORT_ORDERS
from .errors import ConfigurationError, InvalidArgumentError, MissingFieldError
from .filtering import apply_filters
from .normalize import normalize_batch, round_half_away
from .pipeline_types import WeightComparison

# ---------------------------------------------------------------------------
# Scoring
# ---------------------------------------------------------------------------


def score_candidates(
    candidates: Sequence[Candidate],
    max_radius_km: float,
    weights: WeightPair,
    strict: bool = True,
    decimals: int = config.SCORE_DECIMALS,
) -> List[Candidate]:
    """
    Normalise (where scores are missing) and combine, without filtering or
    sorting. Candidates that already carry both normalized scores keep them.
    """
    normalized = normalize_batch(candidates, max_radius_km, decimals=decimals, keep_existing=True)
    return combine_batch(normalized, weights, strict=strict, decimals=decimals)


def _first_radius(*radii: Optional[float]) -> Optional[float]:
    for r in radii:
        if r is not None:
            return r
    return None


def _stable_desc(candidates: Sequence[Candidate]) -> List[Candidate]:
    order = sorted(
        range(len(candidates)),
        key=lambda i: (-candidates[i].combined_score, i),
    )
    return [candidates[i] for i in order]


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def rank(
    candidates: Sequence[Candidate],
    constraints: FilterConstraints,
    weights: WeightPair,
    scoring_radius_km: Optional[float] = None,
    strict: bool = True,
) -> RankingResult:
    """
    Filter -> normalize -> combine -> sort by combined_score (desc).

    The proximity scale uses `scoring_radius_km` when given, otherwise the
    filter radius; with neither there is no scale and the call fails
    before doing any work. Ties keep their input order.
    """
    radius = _first_radius(scoring_radius_km, constraints.max_radius_km)
    if radius is None:
        raise ConfigurationError(
            "ranking needs a radius: set constraints.max_radius_km or scoring_radius_km"
        )

    outcome = apply_filters(candidates, constraints)
    scored = score_candidates(outcome.filtered, radius, weights, strict=strict)
    ranked = _stable_desc(scored)

    logger.info(
        "rank: {} candidates -> {} ranked (weights {}/{}, radius {} km)",
        outcome.stats.initial_count,
        len(ranked),
        weights.proximity_weight,
        weights.freshness_weight,
        radius,
    )
    return RankingResult(candidates=ranked, stats=outcome.stats)


def rank_by_score(candidates: Sequence[Candidate], order: str = SORT_DESC) -> List[Candidate]:
    """Re-sort already scored candidates. Stable for equal scores."""
    if order not in SORT_ORDERS:
        raise InvalidArgumentError(
            f"order must be one of {SORT_ORDERS}, got {order!r}", value=order, constraint="asc|desc"
        )
    for c in candidates:
        if c.combined_score is None:
            raise MissingFieldError(c.id, "combined_score", stage="rank_by_score")

    if order == SORT_ASC:
        return sorted(candidates, key=lambda c: c.combined_score)
    return _stable_desc(candidates)


def top_candidates(candidates: Sequence[Candidate], limit: int = config.TOP_N_DEFAULT) -> List[Candidate]:
    if limit < 1:
        raise InvalidArgumentError(f"limit must be >= 1, got {limit}", value=limit, constraint="limit >= 1")
    return list(candidates[:limit])


def ranking_statistics(candidates: Sequence[Candidate]) -> Dict[str, float]:
    """count / avg / max / min / median of combined_score, 2 decimals."""
    scores = [c.combined_score for c in candidates if c.combined_score is not None]
    if not scores:
        return {"count": 0, "avg": 0.0, "max": 0.0, "min": 0.0, "median": 0.0}

    arr = np.asarray(scores, dtype=float)
    return {
        "count": int(arr.size),
        "avg": round_half_away(float(arr.mean()), 2),
        "max": round_half_away(float(arr.max()), 2),
        "min": round_half_away(float(arr.min()), 2),
        "median": round_half_away(float(np.median(arr)), 2),
    }


def compare_weight_configs(
    candidates: Sequence[Candidate],
    constraints: FilterConstraints,
    weight_pairs: Sequence[WeightPair],
    scoring_radius_km: Optional[float] = None,
    top_k: int = config.COMPARISON_TOP_K,
) -> List[WeightComparison]:
    """Rank the same candidates under several weightings, side by side."""
    out: List[WeightComparison] = []
    for wp in weight_pairs:
        result = rank(candidates, constraints, wp, scoring_radius_km=scoring_radius_km)
        out.append(
            WeightComparison(
                weights=wp,
                result=result,
                statistics=ranking_statistics(result.candidates),
                top=top_candidates(result.candidates, top_k) if result.candidates else [],
            )
        )
    return out
