from __future__ import annotations

import os
from datetime import datetime
from typing import Any, Dict, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .errors import InvalidArgumentError


# ---------------------------
# Scoring settings & env toggles
# ---------------------------

DEFAULT_SCORE_DECIMALS = 2
SCORE_DECIMALS = int(os.getenv("CHENDA_SCORE_DECIMALS", str(DEFAULT_SCORE_DECIMALS)))

SCORE_MIN = 0.0
SCORE_MAX = 100.0

WEIGHT_MIN = 0.0
WEIGHT_MAX = 100.0
WEIGHT_SUM = 100.0
WEIGHT_SUM_TOLERANCE = 1e-9  # float presets like 63.64/36.36


# ---------------------------
# Buyer defaults
# ---------------------------

DEFAULT_PROXIMITY_WEIGHT = 50.0
DEFAULT_FRESHNESS_WEIGHT = 50.0
DEFAULT_MAX_RADIUS_KM = float(os.getenv("CHENDA_DEFAULT_MAX_RADIUS_KM", "50"))

# convenience searches
TOP_N_DEFAULT = 10
COMPARISON_TOP_K = 5
DEFAULT_MIN_FRESHNESS_FOR_SEARCH = 50.0
QUICK_SEARCH_RADIUS_KM = 5.0
PRICE_SEARCH_RADIUS_KM = 10.0
DISTANCE_SEARCH_RADIUS_KM = 15.0
FRESHNESS_SEARCH_RADIUS_KM = 10.0


# ---------------------------
# Geo
# ---------------------------

EARTH_RADIUS_KM = 6371.0


# ---------------------------
# Weight presets (proximity, freshness)
# ---------------------------

WEIGHT_PRESETS: Dict[str, Tuple[float, float]] = {
    "balanced": (50.0, 50.0),
    "proximity_focused": (70.0, 30.0),
    "freshness_focused": (30.0, 70.0),
    "extreme_proximity": (90.0, 10.0),
    "extreme_freshness": (10.0, 90.0),
    "convenience": (80.0, 20.0),
    "quality": (20.0, 80.0),
}


# ---------------------------
# Pydantic models shared across the pipeline
# ---------------------------

class Candidate(BaseModel):
    """
    One listing as seen by the ranking core.

    Raw metrics (distance_km, freshness_percent) come from the caller.
    Derived scores are filled in by the normalizer / combiner through
    model_copy; the model itself is frozen. Unknown attributes are kept
    as pass-through extras.
    """

    model_config = ConfigDict(frozen=True, extra="allow")

    id: Any = None
    name: Optional[str] = None
    price: Optional[float] = None

    distance_km: Optional[float] = None
    freshness_percent: Optional[float] = None
    expiration_date: Optional[datetime] = None

    proximity_score: Optional[float] = None
    freshness_score: Optional[float] = None
    combined_score: Optional[float] = None

    def has_scores(self) -> bool:
        return self.proximity_score is not None and self.freshness_score is not None

    def raw(self) -> "Candidate":
        """Copy with every derived score cleared."""
        return self.model_copy(
            update={"proximity_score": None, "freshness_score": None, "combined_score": None}
        )


class WeightPair(BaseModel):
    """Per-request weights for the combined score, both on a 0-100 scale."""

    model_config = ConfigDict(frozen=True)

    proximity_weight: float = DEFAULT_PROXIMITY_WEIGHT
    freshness_weight: float = DEFAULT_FRESHNESS_WEIGHT

    @property
    def total(self) -> float:
        return self.proximity_weight + self.freshness_weight

    @classmethod
    def from_preset(cls, name: str) -> "WeightPair":
        if name not in WEIGHT_PRESETS:
            raise InvalidArgumentError(
                f"unknown weight preset '{name}'; expected one of {sorted(WEIGHT_PRESETS)}",
                value=name,
                constraint="known preset",
            )
        pw, fw = WEIGHT_PRESETS[name]
        return cls(proximity_weight=pw, freshness_weight=fw)


class FilterConstraints(BaseModel):
    """
    Hard constraints for the filter stage.

    None disables a numeric check. exclude_expired and now have no
    defaults: the caller always states them.
    """

    model_config = ConfigDict(frozen=True)

    max_radius_km: Optional[float] = None
    min_freshness_percent: Optional[float] = None
    exclude_expired: bool
    now: datetime


class FilterStats(BaseModel):
    """Per-stage removal counts; built once per apply_filters call."""

    model_config = ConfigDict(frozen=True)

    initial_count: int = Field(default=0, ge=0)
    removed_by_expiration: int = Field(default=0, ge=0)
    removed_by_radius: int = Field(default=0, ge=0)
    removed_by_freshness: int = Field(default=0, ge=0)
    final_count: int = Field(default=0, ge=0)

    @property
    def total_removed(self) -> int:
        return self.removed_by_expiration + self.removed_by_radius + self.removed_by_freshness


class RankingResult(BaseModel):
    """
    Output of rank() and filter_and_sort(): ordered survivors plus filter stats.
    """

    model_config = ConfigDict(frozen=True)

    candidates: Tuple[Candidate, ...]
    stats: FilterStats


class BuyerPreferences(BaseModel):
    """
    Stored buyer settings. Weights are validated when turned into a
    WeightPair, not here.
    """

    proximity_weight: float = DEFAULT_PROXIMITY_WEIGHT
    shelf_life_weight: float = DEFAULT_FRESHNESS_WEIGHT
    max_radius_km: Optional[float] = DEFAULT_MAX_RADIUS_KM
    min_freshness_percent: Optional[float] = None
    display_mode: str = "ranking"  # "ranking" / "filter"

    def weights(self) -> WeightPair:
        return WeightPair(
            proximity_weight=self.proximity_weight,
            freshness_weight=self.shelf_life_weight,
        )
