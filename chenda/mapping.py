from __future__ import annotations
"""
Mapping utilities between tabular listing data and Candidate models.

Listings often arrive as CSV / parquet exports or JSON records; this module
turns those rows into Candidates (coercing numbers and timestamps, NaN ->
None) and turns a RankingResult back into a DataFrame with a rank column.
"""

import math
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

import numpy as np
import pandas as pd
from loguru import logger

from .config import Candidate, RankingResult
from .errors import InvalidArgumentError

_NUMERIC_FIELDS = ("price", "distance_km", "freshness_percent",
                   "proximity_score", "freshness_score", "combined_score")

RESULT_COLUMNS = ["rank", "id", "name", "price", "distance_km", "freshness_percent",
                  "expiration_date", "proximity_score", "freshness_score", "combined_score"]


def _is_missing(val: Any) -> bool:
    if val is None:
        return True
    if isinstance(val, str):
        return not val.strip()
    if isinstance(val, (float, np.floating)):
        return math.isnan(val)
    return val is pd.NaT


def _coerce_float(val: Any, field: str) -> Optional[float]:
    if _is_missing(val):
        return None
    if isinstance(val, (bool, np.bool_)):
        raise InvalidArgumentError(f"{field} must be numeric, got {val!r}", value=val, constraint="numeric")
    if isinstance(val, (int, float, np.integer, np.floating)):
        return float(val)
    try:
        return float(str(val).strip())
    except ValueError:
        raise InvalidArgumentError(
            f"{field} must be numeric, got {val!r}", value=val, constraint="numeric"
        ) from None


def _coerce_datetime(val: Any, field: str) -> Optional[datetime]:
    if _is_missing(val):
        return None
    if isinstance(val, pd.Timestamp):
        return val.to_pydatetime()
    if isinstance(val, datetime):
        return val
    try:
        return pd.Timestamp(val).to_pydatetime()
    except (ValueError, TypeError):
        raise InvalidArgumentError(
            f"{field} must be a timestamp, got {val!r}", value=val, constraint="datetime"
        ) from None


def _coerce_record(rec: Mapping[str, Any]) -> Dict[str, Any]:
    out: Dict[str, Any] = {}
    for key, val in rec.items():
        if key in _NUMERIC_FIELDS:
            out[key] = _coerce_float(val, key)
        elif key == "expiration_date":
            out[key] = _coerce_datetime(val, key)
        elif key == "name":
            out[key] = None if _is_missing(val) else str(val).strip()
        elif isinstance(val, np.generic):
            out[key] = val.item()
        else:
            out[key] = val
    return out


def candidates_from_records(records: Iterable[Mapping[str, Any]]) -> List[Candidate]:
    return [Candidate(**_coerce_record(rec)) for rec in records]


def candidates_from_frame(df: pd.DataFrame) -> List[Candidate]:
    """One Candidate per row; `item_id` is accepted as an alias for `id`."""
    if df is None:
        raise InvalidArgumentError("df must be provided", value=None, constraint="DataFrame")

    frame = df
    if "id" not in frame.columns and "item_id" in frame.columns:
        frame = frame.rename(columns={"item_id": "id"})

    candidates = candidates_from_records(frame.to_dict(orient="records"))
    logger.info("Mapped {} rows into candidates", len(candidates))
    return candidates


def result_to_frame(result: RankingResult) -> pd.DataFrame:
    """Ranked candidates as a DataFrame; `rank` is 1-based in result order."""
    rows = []
    for pos, c in enumerate(result.candidates, start=1):
        row = c.model_dump()
        row["rank"] = pos
        rows.append(row)

    if not rows:
        return pd.DataFrame(columns=RESULT_COLUMNS)

    df = pd.DataFrame(rows)
    extra = [col for col in df.columns if col not in RESULT_COLUMNS]
    return df[RESULT_COLUMNS + extra]
