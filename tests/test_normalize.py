import pytest

from chenda.config import Candidate
from chenda.errors import InvalidArgumentError, MissingFieldError
from chenda.normalize import (
    normalize_batch,
    normalize_freshness,
    normalize_proximity,
    normalize_scores,
    round_half_away,
)


@pytest.mark.parametrize("radius", [0.5, 1, 10, 50, 123.4])
def test_proximity_boundaries_are_exact(radius):
    assert normalize_proximity(0, radius) == 100
    assert normalize_proximity(radius, radius) == 0
    assert normalize_proximity(radius * 2, radius) == 0
    assert normalize_proximity(radius + 0.001, radius) == 0


def test_proximity_linear_midpoint():
    assert normalize_proximity(25, 50) == 50.0
    assert normalize_proximity(10, 50) == 80.0


def test_proximity_is_non_increasing():
    radius = 37.0
    distances = [i * 0.5 for i in range(0, 100)]
    scores = [normalize_proximity(d, radius) for d in distances]
    for a, b in zip(scores, scores[1:]):
        assert a >= b


def test_proximity_rounds_half_away_from_zero():
    # 100 * (1 - 1/8) = 87.5 -> exact; 100 * (1 - 1/3) = 66.666.. -> 66.67
    assert normalize_proximity(1, 8) == 87.5
    assert normalize_proximity(1, 3) == 66.67
    assert normalize_proximity(1, 3, decimals=0) == 67.0


def test_proximity_rejects_bad_inputs():
    with pytest.raises(InvalidArgumentError, match="cannot be negative"):
        normalize_proximity(-1, 10)
    with pytest.raises(InvalidArgumentError, match="must be positive"):
        normalize_proximity(1, 0)
    with pytest.raises(InvalidArgumentError):
        normalize_proximity(1, -5)
    with pytest.raises(InvalidArgumentError):
        normalize_proximity(float("nan"), 10)
    with pytest.raises(InvalidArgumentError):
        normalize_proximity("3", 10)


@pytest.mark.parametrize("pct", [0, 0.5, 12.25, 50, 99.99, 100])
def test_freshness_is_identity(pct):
    assert normalize_freshness(pct) == pct


def test_freshness_rejects_out_of_range():
    with pytest.raises(InvalidArgumentError):
        normalize_freshness(-0.01)
    with pytest.raises(InvalidArgumentError):
        normalize_freshness(100.5)
    with pytest.raises(InvalidArgumentError):
        normalize_freshness(float("nan"))


def test_round_half_away():
    assert round_half_away(0.125, 2) == 0.13
    assert round_half_away(2.5, 0) == 3.0
    assert round_half_away(1.005, 2) == 1.01
    with pytest.raises(InvalidArgumentError):
        round_half_away(1.0, -1)


def test_normalize_scores_pair():
    assert normalize_scores(25, 80, 50) == (50.0, 80.0)


def test_normalize_batch_sets_scores_without_touching_input():
    items = [
        Candidate(id="a", distance_km=0, freshness_percent=90),
        Candidate(id="b", distance_km=5, freshness_percent=40),
    ]
    out = normalize_batch(items, 10)
    assert [c.proximity_score for c in out] == [100.0, 50.0]
    assert [c.freshness_score for c in out] == [90.0, 40.0]
    assert items[0].proximity_score is None


def test_normalize_batch_keeps_existing_scores_when_asked():
    pre = Candidate(id="a", distance_km=9, freshness_percent=10, proximity_score=77, freshness_score=66)
    out = normalize_batch([pre], 10, keep_existing=True)
    assert out[0].proximity_score == 77
    recomputed = normalize_batch([pre], 10)
    assert recomputed[0].proximity_score == 10.0


def test_normalize_batch_missing_metric():
    with pytest.raises(MissingFieldError) as exc:
        normalize_batch([Candidate(id="x", freshness_percent=50)], 10)
    assert exc.value.field == "distance_km"
    assert exc.value.candidate_id == "x"


def test_normalize_batch_validates_radius_even_when_empty():
    with pytest.raises(InvalidArgumentError):
        normalize_batch([], 0)
