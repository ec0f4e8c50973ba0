from __future__ import annotations

import math
from typing import Any, List, Optional, Sequence

from loguru import logger

from . import config
from .config import Candidate, WeightPair
from .errors import ConfigurationError, InvalidArgumentError, MissingFieldError
from .normalize import round_half_away

# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------


def _check_range(value: Any, name: str, lo: float, hi: float) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidArgumentError(
            f"{name} must be a number, got {value!r}", value=value, constraint="numeric"
        )
    x = float(value)
    if math.isnan(x) or x < lo or x > hi:
        raise InvalidArgumentError(
            f"{name} must be between {lo:g} and {hi:g}, got {value}",
            value=value,
            constraint=f"{lo:g} <= {name} <= {hi:g}",
        )
    return x


def validate_weights(
    proximity_weight: float,
    freshness_weight: float,
    strict: bool = True,
) -> None:
    """
    Range-check both weights; in strict mode also require them to sum to 100.

    Range violations are InvalidArgumentError, a bad sum is a
    ConfigurationError.
    """
    pw = _check_range(proximity_weight, "proximity_weight", config.WEIGHT_MIN, config.WEIGHT_MAX)
    fw = _check_range(freshness_weight, "freshness_weight", config.WEIGHT_MIN, config.WEIGHT_MAX)

    if strict and not math.isclose(pw + fw, config.WEIGHT_SUM, abs_tol=config.WEIGHT_SUM_TOLERANCE):
        raise ConfigurationError(
            f"weights must sum to {config.WEIGHT_SUM:g} in strict mode, got "
            f"{proximity_weight} + {freshness_weight} = {pw + fw:g}"
        )


def make_weights(
    proximity_weight: float,
    freshness_weight: float,
    strict: bool = True,
    normalize: bool = False,
) -> WeightPair:
    """
    Build a validated WeightPair.

    normalize=True rescales the pair so it sums to 100 (e.g. 70/40 ->
    63.64/36.36) instead of rejecting it.
    """
    if normalize:
        pw = _check_range(proximity_weight, "proximity_weight", config.WEIGHT_MIN, config.WEIGHT_MAX)
        fw = _check_range(freshness_weight, "freshness_weight", config.WEIGHT_MIN, config.WEIGHT_MAX)
        total = pw + fw
        if total <= 0:
            raise ConfigurationError("cannot normalize weights that sum to 0")
        proximity_weight = round_half_away(pw / total * config.WEIGHT_SUM, 2)
        # complement, so the rounded pair still sums to 100
        freshness_weight = round_half_away(config.WEIGHT_SUM - proximity_weight, 2)

    validate_weights(proximity_weight, freshness_weight, strict=strict)
    return WeightPair(proximity_weight=proximity_weight, freshness_weight=freshness_weight)


# ---------------------------------------------------------------------------
# Combination
# ---------------------------------------------------------------------------


def _weighted(ps: float, fs: float, pw: float, fw: float, decimals: Optional[int]) -> float:
    combined = (pw * ps + fw * fs) / config.WEIGHT_SUM
    if decimals is not None:
        combined = round_half_away(combined, decimals)
    return combined


def combine(
    proximity_score: float,
    freshness_score: float,
    proximity_weight: float = config.DEFAULT_PROXIMITY_WEIGHT,
    freshness_weight: float = config.DEFAULT_FRESHNESS_WEIGHT,
    strict: bool = True,
    decimals: Optional[int] = None,
) -> float:
    """
    Weighted combination of two 0-100 scores.

    combined = (pw * ps + fw * fs) / 100. With weights summing to 100 the
    result lies between the two input scores. No rounding unless
    `decimals` is given.
    """
    ps = _check_range(proximity_score, "proximity_score", config.SCORE_MIN, config.SCORE_MAX)
    fs = _check_range(freshness_score, "freshness_score", config.SCORE_MIN, config.SCORE_MAX)
    validate_weights(proximity_weight, freshness_weight, strict=strict)
    return _weighted(ps, fs, float(proximity_weight), float(freshness_weight), decimals)


def combine_percent(
    proximity_score: float,
    freshness_score: float,
    proximity_fraction: float,
    freshness_fraction: float,
    strict: bool = True,
    decimals: Optional[int] = None,
) -> float:
    """Same as combine() but with weights on a 0-1 scale (0.7 / 0.3)."""
    _check_range(proximity_fraction, "proximity_fraction", 0.0, 1.0)
    _check_range(freshness_fraction, "freshness_fraction", 0.0, 1.0)
    return combine(
        proximity_score,
        freshness_score,
        proximity_fraction * config.WEIGHT_SUM,
        freshness_fraction * config.WEIGHT_SUM,
        strict=strict,
        decimals=decimals,
    )


def combine_candidate(
    candidate: Candidate,
    weights: WeightPair,
    strict: bool = True,
    decimals: Optional[int] = None,
) -> Candidate:
    """Copy of `candidate` with combined_score set from its normalized scores."""
    if candidate.proximity_score is None:
        raise MissingFieldError(candidate.id, "proximity_score", stage="combine")
    if candidate.freshness_score is None:
        raise MissingFieldError(candidate.id, "freshness_score", stage="combine")

    score = combine(
        candidate.proximity_score,
        candidate.freshness_score,
        weights.proximity_weight,
        weights.freshness_weight,
        strict=strict,
        decimals=decimals,
    )
    return candidate.model_copy(update={"combined_score": score})


def combine_batch(
    candidates: Sequence[Candidate],
    weights: WeightPair,
    strict: bool = True,
    decimals: Optional[int] = None,
) -> List[Candidate]:
    """
    Combine scores for many candidates with one validated weight pair.

    Weights are validated once up front; the first candidate with a missing
    or out-of-range score aborts the whole batch.
    """
    validate_weights(weights.proximity_weight, weights.freshness_weight, strict=strict)
    pw = float(weights.proximity_weight)
    fw = float(weights.freshness_weight)

    out: List[Candidate] = []
    for c in candidates:
        if c.proximity_score is None:
            raise MissingFieldError(c.id, "proximity_score", stage="combine")
        if c.freshness_score is None:
            raise MissingFieldError(c.id, "freshness_score", stage="combine")
        ps = _check_range(c.proximity_score, "proximity_score", config.SCORE_MIN, config.SCORE_MAX)
        fs = _check_range(c.freshness_score, "freshness_score", config.SCORE_MIN, config.SCORE_MAX)
        out.append(c.model_copy(update={"combined_score": _weighted(ps, fs, pw, fw, decimals)}))

    logger.debug("combine_batch: {} candidates, weights={}/{}", len(out), pw, fw)
    return out
