"""Shared vocabularies for sorting and display modes.

Sorter, pipeline and tabular mapping all read these so that field names
and default orders stay in one place.
"""

from __future__ import annotations

from typing import Dict, List

SORT_ASC = "asc"
SORT_DESC = "desc"
SORT_ORDERS = (SORT_ASC, SORT_DESC)

# public sort field -> Candidate attribute
SORT_FIELD_ATTRS: Dict[str, str] = {
    "price": "price",
    "distance": "distance_km",
    "freshness": "freshness_percent",
    "expiration": "expiration_date",
    "score": "combined_score",
}

DEFAULT_SORT_ORDERS: Dict[str, str] = {
    "price": SORT_ASC,        # cheapest first
    "distance": SORT_ASC,     # nearest first
    "freshness": SORT_DESC,   # freshest first
    "expiration": SORT_ASC,   # expiring soonest first
    "score": SORT_DESC,
}

SORT_FIELD_LABELS: Dict[str, str] = {
    "price": "Price",
    "distance": "Distance",
    "freshness": "Freshness",
    "expiration": "Expiration date",
    "score": "Combined score",
}

SORT_FIELD_DESCRIPTIONS: Dict[str, str] = {
    "price": "Sort by product price",
    "distance": "Sort by distance from buyer",
    "freshness": "Sort by remaining shelf life percentage",
    "expiration": "Sort by expiration date",
    "score": "Sort by combined proximity and freshness score",
}

MODE_RANKING = "ranking"
MODE_FILTER = "filter"
MODES: List[str] = [MODE_RANKING, MODE_FILTER]

MODE_DESCRIPTIONS: Dict[str, str] = {
    MODE_RANKING: "Products ranked by combined proximity and freshness score",
    MODE_FILTER: "Products filtered by constraints and sorted by a single attribute",
}
