from datetime import datetime, timedelta, timezone

import pytest

from chenda.errors import InvalidArgumentError
from chenda.shelf_life import (
    expiration_date,
    freshness_percent,
    is_expired,
    remaining_shelf_life_days,
    shelf_life_metrics,
)


def test_remaining_and_percent():
    assert remaining_shelf_life_days(7, 2) == 5
    assert freshness_percent(7, 2) == 71.43
    assert freshness_percent(10, 0) == 100.0
    assert freshness_percent(10, 10) == 0.0


@pytest.mark.parametrize("total,used", [(0, 0), (-3, 1), (5, -1), (5, 6), (float("nan"), 1)])
def test_remaining_rejects_bad_input(total, used):
    with pytest.raises(InvalidArgumentError):
        remaining_shelf_life_days(total, used)


def test_expiration_date_and_expiry():
    listed = datetime(2026, 2, 1, 6, 0)
    exp = expiration_date(listed, 3)
    assert exp == datetime(2026, 2, 4, 6, 0)
    assert not is_expired(exp, exp)
    assert is_expired(exp, exp + timedelta(seconds=1))
    with pytest.raises(InvalidArgumentError):
        expiration_date(listed, -1)
    with pytest.raises(InvalidArgumentError):
        expiration_date("2026-02-01", 1)


def test_shelf_life_metrics():
    m = shelf_life_metrics(4, 1, datetime(2026, 2, 1), now=datetime(2026, 2, 3))
    assert m["remaining_shelf_life_days"] == 3
    assert m["freshness_percent"] == 75.0
    assert m["expiration_date"] == datetime(2026, 2, 4)
    assert m["is_expired"] is False


def test_is_expired_rejects_naive_vs_aware():
    naive = datetime(2026, 2, 1, 9, 0)
    aware = datetime(2026, 2, 1, 9, 0, tzinfo=timezone.utc)
    with pytest.raises(InvalidArgumentError):
        is_expired(naive, aware)
    with pytest.raises(InvalidArgumentError):
        is_expired(aware, naive)
    assert is_expired(aware, aware + timedelta(hours=1))
