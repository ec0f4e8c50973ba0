"""Great-circle distance between two (lat, lng) points."""

from __future__ import annotations

import math
from typing import Optional, Tuple

from . import config
from .errors import InvalidArgumentError
from .normalize import round_half_away

LatLng = Tuple[float, float]


def _check_point(point: LatLng, name: str) -> Tuple[float, float]:
    try:
        lat, lng = point
    except (TypeError, ValueError):
        raise InvalidArgumentError(
            f"{name} must be a (lat, lng) pair, got {point!r}", value=point, constraint="(lat, lng)"
        ) from None

    for label, v in (("lat", lat), ("lng", lng)):
        if isinstance(v, bool) or not isinstance(v, (int, float)) or math.isnan(v):
            raise InvalidArgumentError(
                f"{name}.{label} must be a number, got {v!r}", value=v, constraint="numeric"
            )
    if not -90.0 <= lat <= 90.0:
        raise InvalidArgumentError(
            f"{name}.lat must be between -90 and 90, got {lat}", value=lat, constraint="-90 <= lat <= 90"
        )
    if not -180.0 <= lng <= 180.0:
        raise InvalidArgumentError(
            f"{name}.lng must be between -180 and 180, got {lng}",
            value=lng,
            constraint="-180 <= lng <= 180",
        )
    return float(lat), float(lng)


def haversine_km(a: LatLng, b: LatLng, decimals: Optional[int] = None) -> float:
    lat1, lng1 = _check_point(a, "a")
    lat2, lng2 = _check_point(b, "b")
    if (lat1, lng1) == (lat2, lng2):
        return 0.0

    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlmb = math.radians(lng2 - lng1)

    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2) ** 2
    h = min(1.0, h)  # float error near antipodes
    dist = 2 * config.EARTH_RADIUS_KM * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    if decimals is not None:
        dist = round_half_away(dist, decimals)
    return dist
