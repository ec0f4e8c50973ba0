from datetime import datetime

import pytest

from chenda.config import BuyerPreferences, Candidate, FilterConstraints, WeightPair
from chenda.errors import InvalidArgumentError, MissingFieldError
from chenda.pipeline import (
    enrich_listings,
    quick_search,
    run_pipeline,
    search_by_distance,
    search_by_freshness,
    search_by_price,
)
from chenda.pipeline_types import Listing, PipelineRequest

NOW = datetime(2026, 6, 1, 10, 0)
BUYER = (14.5995, 120.9842)  # Manila


@pytest.fixture
def listings():
    return [
        Listing(id=1, name="Mangoes", price=120.0, location=(14.6091, 121.0223),
                total_shelf_life_days=10, days_already_used=2, listed_date=datetime(2026, 5, 30)),
        Listing(id=2, name="Lettuce", price=45.0, location=(14.5547, 121.0244),
                total_shelf_life_days=5, days_already_used=4, listed_date=datetime(2026, 6, 1)),
        Listing(id=3, name="Spoiled fish", price=80.0, location=(14.6000, 120.9850),
                total_shelf_life_days=3, days_already_used=2, listed_date=datetime(2026, 5, 20)),
        Listing(id=4, name="Far rice", price=30.0, location=(16.4023, 120.5960),
                total_shelf_life_days=300, days_already_used=10, listed_date=datetime(2026, 5, 1),
                extra={"category": "grains"}),
    ]


@pytest.fixture
def candidates(listings):
    return enrich_listings(BUYER, listings, NOW)


def test_enrich_listings_adds_metrics(candidates):
    mango = candidates[0]
    assert 0 < mango.distance_km < 10
    assert mango.freshness_percent == 80.0
    assert mango.expiration_date == datetime(2026, 6, 7)
    assert candidates[3].distance_km > 150
    assert candidates[3].category == "grains"


def test_enrich_without_location_leaves_distance_missing():
    out = enrich_listings(BUYER, [Listing(id="x", price=1.0)], NOW)
    assert out[0].distance_km is None
    assert out[0].freshness_percent is None


def test_run_pipeline_ranking_mode(candidates):
    request = PipelineRequest(
        constraints=FilterConstraints(max_radius_km=20, exclude_expired=True, now=NOW),
        weights=WeightPair.from_preset("freshness_focused"),
    )
    res = run_pipeline(candidates, request)
    assert res.mode == "ranking"
    assert res.weights.freshness_weight == 70
    assert [c.id for c in res.candidates] == [1, 2]
    assert res.stats.removed_by_expiration == 1
    assert res.stats.removed_by_radius == 1
    assert res.execution_time_ms >= 0


def test_run_pipeline_filter_mode(candidates):
    request = PipelineRequest(
        constraints=FilterConstraints(max_radius_km=20, exclude_expired=True, now=NOW),
        mode="filter",
        sort_field="price",
    )
    res = run_pipeline(candidates, request)
    assert [c.id for c in res.candidates] == [2, 1]
    assert res.weights is None
    assert res.sort_field == "price"


def test_run_pipeline_rejects_unknown_mode(candidates):
    request = PipelineRequest(
        constraints=FilterConstraints(exclude_expired=False, now=NOW),
        mode="magic",
    )
    with pytest.raises(InvalidArgumentError):
        run_pipeline(candidates, request)


def test_request_from_preferences():
    prefs = BuyerPreferences(proximity_weight=80, shelf_life_weight=20, max_radius_km=12,
                             min_freshness_percent=30, display_mode="filter")
    req = PipelineRequest.from_preferences(prefs, NOW, sort_field="distance")
    assert req.mode == "filter"
    assert req.constraints.max_radius_km == 12
    assert req.constraints.min_freshness_percent == 30
    assert req.constraints.exclude_expired is True
    assert req.weights.proximity_weight == 80

    preset = PipelineRequest.from_preferences(prefs, NOW, weight_preset="quality")
    assert preset.weights.freshness_weight == 80


def test_quick_search_uses_balanced_top_ten():
    many = [
        Candidate(id=i, distance_km=i * 0.4, freshness_percent=50, expiration_date=datetime(2026, 7, 1))
        for i in range(15)
    ]
    out = quick_search(many, NOW)
    # radius 5 km keeps ids 0..12, balanced scores fall with distance
    assert [c.id for c in out] == list(range(10))


def test_convenience_searches(candidates):
    assert [c.id for c in search_by_price(candidates, NOW)] == [2, 1]
    assert [c.id for c in search_by_distance(candidates, NOW)][0] == 1
    # lettuce is at 20% freshness, below the 50% default
    assert [c.id for c in search_by_freshness(candidates, NOW)] == [1]


def test_missing_metric_surfaces_from_pipeline():
    request = PipelineRequest(
        constraints=FilterConstraints(max_radius_km=10, exclude_expired=False, now=NOW),
    )
    with pytest.raises(MissingFieldError):
        run_pipeline([Candidate(id="nodist", freshness_percent=50)], request)
