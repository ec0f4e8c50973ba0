# chenda/pipeline.py
from __future__ import annotations

import time
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from . import config
from .config import Candidate, FilterConstraints, WeightPair
from .constants import MODE_FILTER, MODE_RANKING, MODES
from .errors import InvalidArgumentError
from .geo import LatLng, haversine_km
from .pipeline_types import Listing, PipelineRequest, PipelineResult
from .rank import rank, top_candidates
from .shelf_life import shelf_life_metrics
from .sort import filter_and_sort

# ---------------------------------------------------------------------------
# Enrichment
# ---------------------------------------------------------------------------


def _has_shelf_data(listing: Listing) -> bool:
    return (
        listing.total_shelf_life_days is not None
        and listing.days_already_used is not None
        and listing.listed_date is not None
    )


def enrich_listing(buyer_location: LatLng, listing: Listing, now: datetime) -> Candidate:
    data: Dict[str, Any] = dict(listing.extra)
    data.update(id=listing.id, name=listing.name, price=listing.price)

    if listing.location is not None:
        data["distance_km"] = haversine_km(buyer_location, listing.location, decimals=2)

    if _has_shelf_data(listing):
        metrics = shelf_life_metrics(
            listing.total_shelf_life_days,
            listing.days_already_used,
            listing.listed_date,
            now,
        )
        data["freshness_percent"] = metrics["freshness_percent"]
        data["expiration_date"] = metrics["expiration_date"]

    return Candidate(**data)


def enrich_listings(
    buyer_location: LatLng,
    listings: Sequence[Listing],
    now: datetime,
) -> List[Candidate]:
    """
    Attach distance_km (haversine from the buyer) and the shelf-life metrics
    to each listing. Listings without a location or shelf data come through
    without those fields; a later stage that needs them raises.
    """
    out = [enrich_listing(buyer_location, lst, now) for lst in listings]
    logger.debug("enrich_listings: {} listings enriched", len(out))
    return out


# ---------------------------------------------------------------------------
# Orchestration
# ---------------------------------------------------------------------------


def run_pipeline(candidates: Sequence[Candidate], request: PipelineRequest) -> PipelineResult:
    """
    Run one request in ranking mode (composite score) or filter mode
    (single-attribute sort). The mode is decided once, here.
    """
    if request.mode not in MODES:
        raise InvalidArgumentError(
            f"mode must be one of {MODES}, got {request.mode!r}",
            value=request.mode,
            constraint="ranking|filter",
        )

    t0 = time.perf_counter()
    if request.mode == MODE_RANKING:
        result = rank(
            candidates,
            request.constraints,
            request.weights,
            scoring_radius_km=request.scoring_radius_km,
            strict=request.strict,
        )
        out = PipelineResult(
            result=result,
            mode=request.mode,
            weights=request.weights,
            execution_time_ms=0.0,
        )
    else:
        result = filter_and_sort(
            candidates, request.constraints, request.sort_field, request.sort_order
        )
        out = PipelineResult(
            result=result,
            mode=request.mode,
            weights=None,
            execution_time_ms=0.0,
            sort_field=request.sort_field,
            sort_order=request.sort_order,
        )
    out.execution_time_ms = round((time.perf_counter() - t0) * 1000.0, 3)

    logger.info(
        "Pipeline [{}]: {} in -> {} out ({:.3f} ms)",
        request.mode,
        result.stats.initial_count,
        result.stats.final_count,
        out.execution_time_ms,
    )
    return out


# ---------------------------------------------------------------------------
# Convenience searches
# ---------------------------------------------------------------------------


def _constraints(now: datetime, max_radius_km: float, min_freshness: Optional[float] = None) -> FilterConstraints:
    return FilterConstraints(
        max_radius_km=max_radius_km,
        min_freshness_percent=min_freshness,
        exclude_expired=True,
        now=now,
    )


def quick_search(
    candidates: Sequence[Candidate],
    now: datetime,
    max_radius_km: float = config.QUICK_SEARCH_RADIUS_KM,
    limit: int = config.TOP_N_DEFAULT,
) -> List[Candidate]:
    """Top `limit` candidates under the balanced preset."""
    request = PipelineRequest(
        constraints=_constraints(now, max_radius_km),
        mode=MODE_RANKING,
        weights=WeightPair.from_preset("balanced"),
    )
    return top_candidates(run_pipeline(candidates, request).candidates, limit)


def _sorted_search(
    candidates: Sequence[Candidate],
    constraints: FilterConstraints,
    sort_field: str,
    sort_order: str,
) -> List[Candidate]:
    request = PipelineRequest(
        constraints=constraints,
        mode=MODE_FILTER,
        sort_field=sort_field,
        sort_order=sort_order,
    )
    return list(run_pipeline(candidates, request).candidates)


def search_by_price(
    candidates: Sequence[Candidate],
    now: datetime,
    max_radius_km: float = config.PRICE_SEARCH_RADIUS_KM,
) -> List[Candidate]:
    return _sorted_search(candidates, _constraints(now, max_radius_km), "price", "asc")


def search_by_distance(
    candidates: Sequence[Candidate],
    now: datetime,
    max_radius_km: float = config.DISTANCE_SEARCH_RADIUS_KM,
) -> List[Candidate]:
    return _sorted_search(candidates, _constraints(now, max_radius_km), "distance", "asc")


def search_by_freshness(
    candidates: Sequence[Candidate],
    now: datetime,
    max_radius_km: float = config.FRESHNESS_SEARCH_RADIUS_KM,
    min_freshness_percent: float = config.DEFAULT_MIN_FRESHNESS_FOR_SEARCH,
) -> List[Candidate]:
    return _sorted_search(
        candidates,
        _constraints(now, max_radius_km, min_freshness_percent),
        "freshness",
        "desc",
    )
