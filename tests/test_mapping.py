from datetime import datetime

import numpy as np
import pandas as pd
import pytest

from chenda.config import Candidate, FilterConstraints, WeightPair
from chenda.errors import InvalidArgumentError
from chenda.mapping import candidates_from_frame, candidates_from_records, result_to_frame
from chenda.rank import rank


def test_candidates_from_frame_coerces_columns():
    df = pd.DataFrame(
        {
            "item_id": [1, 2],
            "name": ["Kale ", np.nan],
            "price": ["35.5", 20],
            "distance_km": [1.25, np.nan],
            "freshness_percent": [88, 40],
            "expiration_date": ["2026-04-02T08:00:00", pd.NaT],
            "farm": ["North", "South"],
        }
    )
    out = candidates_from_frame(df)
    assert [c.id for c in out] == [1, 2]
    assert isinstance(out[0].id, int)
    assert out[0].name == "Kale"
    assert out[0].price == 35.5
    assert out[0].expiration_date == datetime(2026, 4, 2, 8, 0)
    assert out[1].name is None
    assert out[1].distance_km is None
    assert out[1].expiration_date is None
    assert out[1].farm == "South"


def test_candidates_from_records_rejects_garbage():
    with pytest.raises(InvalidArgumentError):
        candidates_from_records([{"id": 1, "price": "cheap"}])
    with pytest.raises(InvalidArgumentError):
        candidates_from_records([{"id": 1, "expiration_date": "not a date"}])


def test_result_to_frame_has_rank_column():
    items = [
        Candidate(id="b", distance_km=20, freshness_percent=50, origin="x"),
        Candidate(id="a", distance_km=0, freshness_percent=90, origin="y"),
    ]
    result = rank(
        items,
        FilterConstraints(max_radius_km=40, exclude_expired=False, now=datetime(2026, 1, 1)),
        WeightPair(),
    )
    df = result_to_frame(result)
    assert list(df["id"]) == ["a", "b"]
    assert list(df["rank"]) == [1, 2]
    assert df.columns[0] == "rank"
    assert "origin" in df.columns
    assert df.loc[0, "combined_score"] == 95.0


def test_result_to_frame_empty():
    result = rank(
        [],
        FilterConstraints(max_radius_km=5, exclude_expired=False, now=datetime(2026, 1, 1)),
        WeightPair(),
    )
    df = result_to_frame(result)
    assert df.empty
    assert "combined_score" in df.columns
