"""Error taxonomy for the ranking core.

Everything is raised at the point of detection and propagated unchanged;
nothing inside the package catches these.
"""

from __future__ import annotations

from typing import Any, Optional


class RankingError(ValueError):
    """Base class for all ranking-core failures."""


class InvalidArgumentError(RankingError):
    """A numeric input is out of range, NaN, or otherwise unusable."""

    def __init__(self, message: str, value: Any = None, constraint: Optional[str] = None):
        super().__init__(message)
        self.value = value
        self.constraint = constraint


class MissingFieldError(InvalidArgumentError):
    """A candidate lacks a field that an enabled stage needs."""

    def __init__(self, candidate_id: Any, field: str, stage: Optional[str] = None):
        where = f" (needed by {stage})" if stage else ""
        super().__init__(
            f"candidate {candidate_id!r} is missing required field '{field}'{where}",
            value=None,
            constraint=f"{field} is required",
        )
        self.candidate_id = candidate_id
        self.field = field
        self.stage = stage


class ConfigurationError(RankingError):
    """The request configuration is inconsistent (bad weight sum, no radius)."""
