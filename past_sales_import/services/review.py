from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from ..models.validated_row import RowBucket, ValidatedRow

"""Review/filter stage.

Pure partitioning over the validated rows; rows are never mutated and the
original order is preserved inside every view.
"""

__all__ = [
    "FilterMode",
    "ReviewCounts",
    "ReviewFilter",
    "review_counts",
]


class FilterMode(Enum):
    ALL = "all"
    WARNINGS = "warnings"  # valid rows carrying warnings
    ERRORS = "errors"  # invalid rows


@dataclass(frozen=True)
class ReviewCounts:
    total: int
    valid: int  # includes rows with warnings
    warnings: int
    errors: int


def review_counts(rows: Sequence[ValidatedRow]) -> ReviewCounts:
    buckets = [r.bucket for r in rows]
    errors = buckets.count(RowBucket.ERROR)
    return ReviewCounts(
        total=len(rows),
        valid=len(rows) - errors,
        warnings=buckets.count(RowBucket.WARNING),
        errors=errors,
    )


class ReviewFilter:
    """Operator-selected view over the review rows.

    ``toggle`` behaves like the clickable count badges: selecting the active
    mode again returns to ALL.
    """

    def __init__(self, mode: FilterMode = FilterMode.ALL) -> None:
        self.mode = mode

    def toggle(self, mode: FilterMode) -> FilterMode:
        self.mode = FilterMode.ALL if self.mode is mode else mode
        return self.mode

    def reset(self) -> None:
        self.mode = FilterMode.ALL

    def apply(self, rows: Sequence[ValidatedRow]) -> list[ValidatedRow]:
        if self.mode is FilterMode.WARNINGS:
            return [r for r in rows if r.bucket is RowBucket.WARNING]
        if self.mode is FilterMode.ERRORS:
            return [r for r in rows if r.bucket is RowBucket.ERROR]
        return list(rows)
