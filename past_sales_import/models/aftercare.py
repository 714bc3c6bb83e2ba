from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum

"""Aftercare plan models.

An aftercare plan is a sequence of post-settlement vendor touchpoints generated
from a template. Templates come from config/import.yml (``aftercare`` section).
"""

__all__ = [
    "TimingType",
    "HistoricalMode",
    "SaleAgeCategory",
    "AftercareTaskTemplate",
    "AftercareTemplate",
    "AftercareTask",
    "AftercareImportOptions",
]


class TimingType(Enum):
    IMMEDIATE = "immediate"  # settlement + days_offset
    ANNIVERSARY = "anniversary"  # settlement + anniversary_year years


class HistoricalMode(Enum):
    """How tasks whose due date is already past are created.

    - SKIP: created with historical_skip=True, excluded from health scoring
    - COMPLETE: created already completed
    - INCLUDE: created as ordinary overdue tasks
    """
    SKIP = "skip"
    COMPLETE = "complete"
    INCLUDE = "include"


class SaleAgeCategory(Enum):
    RECENT = "recent"  # < 1 year: full plan
    HISTORICAL = "historical"  # 1-10 years: past tasks handled per HistoricalMode
    LEGACY = "legacy"  # > 10 years: evergreen annual plan

    @property
    def description(self) -> str:
        return {
            SaleAgeCategory.RECENT: "< 1 year old - Full 10-year plan",
            SaleAgeCategory.HISTORICAL: "1-10 years old - Partial plan (past tasks handled)",
            SaleAgeCategory.LEGACY: "10+ years old - Evergreen annual plan",
        }[self]


@dataclass(frozen=True)
class AftercareTaskTemplate:
    title: str
    timing_type: TimingType
    description: str = ""
    days_offset: int | None = None
    anniversary_year: int | None = None


@dataclass(frozen=True)
class AftercareTemplate:
    id: str
    name: str
    tasks: tuple[AftercareTaskTemplate, ...]


@dataclass(frozen=True)
class AftercareTask:
    """Task row written to the tasks table."""
    title: str
    description: str
    due_date: date
    past_sale_id: str
    aftercare_year: int | None
    team_id: str
    assigned_to: str
    completed: bool = False
    completed_at: date | None = None
    historical_skip: bool = False


@dataclass(frozen=True)
class AftercareImportOptions:
    """Operator-selected aftercare policy for an import."""
    activate_aftercare: bool = False
    historical_mode: HistoricalMode = HistoricalMode.SKIP
