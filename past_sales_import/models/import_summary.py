from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

"""Import result models.

ImportSummary is what the operator sees on the completion screen; CommitResult
adds the identifiers of committed sales so aftercare activation can be keyed
off them. AftercareSummary is reported separately and never alters the commit
counts.
"""

__all__ = [
    "ImportSummary",
    "CommittedSale",
    "CommitResult",
    "AftercareSummary",
]


@dataclass(frozen=True)
class ImportSummary:
    """Aggregate counts for one commit."""
    total: int  # validated rows handed to commit
    successful: int  # rows persisted
    failed: int  # rows rejected by the store
    warnings: int  # submitted rows carrying warnings
    skipped: int = 0  # invalid rows never submitted


@dataclass(frozen=True)
class CommittedSale:
    past_sale_id: str
    row_number: int
    settlement_date: date | None
    agent_id: str | None = None


@dataclass(frozen=True)
class CommitResult:
    summary: ImportSummary
    committed: list[CommittedSale] = field(default_factory=list)
    elapsed_seconds: float = 0.0


@dataclass(frozen=True)
class AftercareSummary:
    plans_activated: int = 0
    tasks_created: int = 0
    tasks_marked_historical: int = 0
    evergreen_plans_created: int = 0
