"""Typed containers shared across pipeline modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from .config import (
    BuyerPreferences,
    Candidate,
    FilterConstraints,
    FilterStats,
    RankingResult,
    WeightPair,
)
from .constants import MODE_RANKING


@dataclass
class FilterOutcome:
    """Survivors of apply_filters plus per-stage removal counts."""

    filtered: List[Candidate]
    stats: FilterStats


@dataclass
class CandidateCheck:
    passes: bool
    reasons: List[str]
    candidate_id: Any = None


@dataclass
class Listing:
    """A raw listing before distance and shelf-life enrichment."""

    id: Any
    name: Optional[str] = None
    price: Optional[float] = None
    location: Optional[Tuple[float, float]] = None
    total_shelf_life_days: Optional[float] = None
    days_already_used: Optional[float] = None
    listed_date: Optional[datetime] = None
    extra: Dict[str, Any] = field(default_factory=dict)


@dataclass
class PipelineRequest:
    constraints: FilterConstraints
    mode: str = MODE_RANKING
    weights: WeightPair = field(default_factory=WeightPair)
    sort_field: str = "price"
    sort_order: Optional[str] = None
    scoring_radius_km: Optional[float] = None
    strict: bool = True

    @classmethod
    def from_preferences(
        cls,
        prefs: BuyerPreferences,
        now: datetime,
        exclude_expired: bool = True,
        weight_preset: Optional[str] = None,
        sort_field: str = "price",
        sort_order: Optional[str] = None,
    ) -> "PipelineRequest":
        weights = WeightPair.from_preset(weight_preset) if weight_preset else prefs.weights()
        constraints = FilterConstraints(
            max_radius_km=prefs.max_radius_km,
            min_freshness_percent=prefs.min_freshness_percent,
            exclude_expired=exclude_expired,
            now=now,
        )
        return cls(
            constraints=constraints,
            mode=prefs.display_mode,
            weights=weights,
            sort_field=sort_field,
            sort_order=sort_order,
        )


@dataclass
class PipelineResult:
    result: RankingResult
    mode: str
    weights: Optional[WeightPair]
    execution_time_ms: float
    sort_field: Optional[str] = None
    sort_order: Optional[str] = None

    @property
    def candidates(self) -> Tuple[Candidate, ...]:
        return self.result.candidates

    @property
    def stats(self) -> FilterStats:
        return self.result.stats


@dataclass
class WeightComparison:
    """One row of compare_weight_configs()."""

    weights: WeightPair
    result: RankingResult
    statistics: Dict[str, float]
    top: List[Candidate]
