from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from loguru import logger

from .config import Candidate, FilterConstraints, RankingResult
from .constants import (
    DEFAULT_SORT_ORDERS,
    MODE_DESCRIPTIONS,
    MODE_FILTER,
    MODE_RANKING,
    SORT_DESC,
    SORT_FIELD_ATTRS,
    SORT_FIELD_DESCRIPTIONS,
    SORT_FIELD_LABELS,
    SORT_ORDERS,
)
from .errors import InvalidArgumentError
from .filtering import apply_filters, read_metric
from .shelf_life import check_comparable


def _check_field(sort_field: str) -> str:
    if sort_field not in SORT_FIELD_ATTRS:
        raise InvalidArgumentError(
            f"sort_field must be one of {sorted(SORT_FIELD_ATTRS)}, got {sort_field!r}",
            value=sort_field,
            constraint="known sort field",
        )
    return SORT_FIELD_ATTRS[sort_field]


def default_sort_order(sort_field: str) -> str:
    _check_field(sort_field)
    return DEFAULT_SORT_ORDERS[sort_field]


def sort_candidates(
    candidates: Sequence[Candidate],
    sort_field: str,
    sort_order: Optional[str] = None,
) -> List[Candidate]:
    """
    Sort by one raw attribute. sort_order=None picks the field's natural
    default (cheapest / nearest / freshest / soonest-expiring first).
    Equal keys keep their input order in both directions.
    """
    attr = _check_field(sort_field)
    order = sort_order if sort_order is not None else DEFAULT_SORT_ORDERS[sort_field]
    if order not in SORT_ORDERS:
        raise InvalidArgumentError(
            f"sort_order must be one of {SORT_ORDERS}, got {sort_order!r}",
            value=sort_order,
            constraint="asc|desc",
        )

    items = list(candidates)
    stage = f"sort by {sort_field}"
    keys = [read_metric(c, attr, stage) for c in items]
    if keys and isinstance(keys[0], datetime):
        for c, k in zip(items, keys):
            check_comparable(k, keys[0], f"candidate {c.id!r} {attr}")

    # sorted(reverse=True) is still stable for equal keys
    order_idx = sorted(range(len(keys)), key=keys.__getitem__, reverse=(order == SORT_DESC))
    return [items[i] for i in order_idx]


def filter_and_sort(
    candidates: Sequence[Candidate],
    constraints: FilterConstraints,
    sort_field: str,
    sort_order: Optional[str] = None,
) -> RankingResult:
    """Filter+sort mode: hard constraints, then a single-attribute sort; no scoring."""
    # reject a bad field/order before touching the candidates
    _check_field(sort_field)
    if sort_order is not None and sort_order not in SORT_ORDERS:
        raise InvalidArgumentError(
            f"sort_order must be one of {SORT_ORDERS}, got {sort_order!r}",
            value=sort_order,
            constraint="asc|desc",
        )

    outcome = apply_filters(candidates, constraints)
    ordered = sort_candidates(outcome.filtered, sort_field, sort_order)
    logger.info(
        "filter_and_sort: {} candidates -> {} sorted by {} ({})",
        outcome.stats.initial_count,
        len(ordered),
        sort_field,
        sort_order or DEFAULT_SORT_ORDERS[sort_field],
    )
    return RankingResult(candidates=ordered, stats=outcome.stats)


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------

def sort_options() -> List[Dict[str, Any]]:
    return [
        {
            "value": f,
            "label": SORT_FIELD_LABELS[f],
            "default_order": DEFAULT_SORT_ORDERS[f],
            "description": SORT_FIELD_DESCRIPTIONS[f],
        }
        for f in SORT_FIELD_ATTRS
    ]


def toggle_mode(mode: str) -> str:
    if mode not in MODE_DESCRIPTIONS:
        raise InvalidArgumentError(f"unknown mode {mode!r}", value=mode, constraint="ranking|filter")
    return MODE_FILTER if mode == MODE_RANKING else MODE_RANKING


def mode_description(mode: str) -> str:
    if mode not in MODE_DESCRIPTIONS:
        raise InvalidArgumentError(f"unknown mode {mode!r}", value=mode, constraint="ranking|filter")
    return MODE_DESCRIPTIONS[mode]
