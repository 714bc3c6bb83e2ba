from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .past_sale import PastSaleRecord

"""ValidatedRow model: a PastSaleRecord plus the issues found while mapping it."""

__all__ = [
    "Severity",
    "Issue",
    "RowBucket",
    "ValidatedRow",
]


class Severity(Enum):
    ERROR = "error"  # blocks commit
    WARNING = "warning"  # committed but flagged for review


class RowBucket(Enum):
    """Review bucket a row falls into."""
    VALID = "valid"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class Issue:
    severity: Severity
    field: str | None
    message: str


@dataclass(frozen=True)
class ValidatedRow:
    """Outcome of validating one RawRow.

    A row is valid when it has no ERROR issues, regardless of how many warnings
    it carries. Only valid rows are submitted at commit time.
    """
    row_number: int
    record: PastSaleRecord
    issues: tuple[Issue, ...] = ()

    @property
    def valid(self) -> bool:
        return not any(i.severity is Severity.ERROR for i in self.issues)

    @property
    def errors(self) -> list[str]:
        return [i.message for i in self.issues if i.severity is Severity.ERROR]

    @property
    def warnings(self) -> list[str]:
        return [i.message for i in self.issues if i.severity is Severity.WARNING]

    @property
    def bucket(self) -> RowBucket:
        if not self.valid:
            return RowBucket.ERROR
        if self.warnings:
            return RowBucket.WARNING
        return RowBucket.VALID
