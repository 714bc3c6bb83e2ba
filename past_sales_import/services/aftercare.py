from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta

import pandas as pd

from ..errors import PersistenceError, WorkflowError
from ..models.aftercare import (
    AftercareTask,
    AftercareTaskTemplate,
    AftercareTemplate,
    HistoricalMode,
    SaleAgeCategory,
    TimingType,
)
from ..models.import_summary import AftercareSummary, CommittedSale
from ..models.validated_row import ValidatedRow
from ..db.store import TaskStore

"""Aftercare plan activation for freshly imported sales.

Each committed sale with a settlement date is classified by age:

- recent (< 1 year): full plan from the standard template
- historical (1-10 years): standard template; tasks already past due follow
  the operator's HistoricalMode
- legacy (> 10 years): rolling evergreen plan of the next five anniversaries

A task is past due when its due date (settlement + template offset) is before
``today``.
"""

__all__ = [
    "EVERGREEN_HORIZON_YEARS",
    "add_years",
    "full_years_between",
    "classify_sale_age",
    "age_breakdown",
    "PlanTasks",
    "generate_plan_tasks",
    "generate_evergreen_tasks",
    "activate_batch_aftercare",
]

logger = logging.getLogger(__name__)

EVERGREEN_HORIZON_YEARS = 5
RECENT_YEARS = 1
LEGACY_YEARS = 10


def add_years(value: date, years: int) -> date:
    """Calendar-aware year offset; 29 Feb lands on 28 Feb in common years."""
    return (pd.Timestamp(value) + pd.DateOffset(years=years)).date()


def full_years_between(start: date, end: date) -> int:
    years = end.year - start.year
    if (end.month, end.day) < (start.month, start.day):
        years -= 1
    return years


def classify_sale_age(settlement_date: date, today: date) -> SaleAgeCategory:
    if add_years(settlement_date, RECENT_YEARS) > today:
        return SaleAgeCategory.RECENT
    if add_years(settlement_date, LEGACY_YEARS) < today:
        return SaleAgeCategory.LEGACY
    return SaleAgeCategory.HISTORICAL


def age_breakdown(rows: Sequence[ValidatedRow], today: date) -> dict[SaleAgeCategory, int]:
    """Count valid rows per age category; rows without a settlement date count as recent."""
    counts = {category: 0 for category in SaleAgeCategory}
    for row in rows:
        if not row.valid:
            continue
        settlement = row.record.settlement_date
        category = SaleAgeCategory.RECENT if settlement is None else classify_sale_age(settlement, today)
        counts[category] += 1
    return counts


@dataclass
class PlanTasks:
    tasks: list[AftercareTask] = field(default_factory=list)
    historical: int = 0  # created with historical_skip=True


def _due_date(task: AftercareTaskTemplate, settlement: date) -> tuple[date, int | None]:
    if task.timing_type is TimingType.IMMEDIATE and task.days_offset is not None:
        return settlement + timedelta(days=task.days_offset), 0
    if task.timing_type is TimingType.ANNIVERSARY and task.anniversary_year is not None:
        return add_years(settlement, task.anniversary_year), task.anniversary_year
    return settlement, None


def generate_plan_tasks(
    past_sale_id: str,
    settlement: date,
    template: AftercareTemplate,
    team_id: str,
    assigned_to: str,
    historical_mode: HistoricalMode,
    today: date,
) -> PlanTasks:
    """Expand a fixed-length template for one sale."""
    plan = PlanTasks()
    for task in template.tasks:
        due, year = _due_date(task, settlement)
        past_due = due < today
        completed = past_due and historical_mode is HistoricalMode.COMPLETE
        historical_skip = past_due and historical_mode is HistoricalMode.SKIP
        if historical_skip:
            plan.historical += 1
        plan.tasks.append(
            AftercareTask(
                title=task.title,
                description=task.description,
                due_date=due,
                past_sale_id=past_sale_id,
                aftercare_year=year,
                team_id=team_id,
                assigned_to=assigned_to,
                completed=completed,
                completed_at=due if completed else None,
                historical_skip=historical_skip,
            )
        )
    return plan


def generate_evergreen_tasks(
    past_sale_id: str,
    settlement: date,
    template: AftercareTemplate,
    team_id: str,
    assigned_to: str,
    today: date,
) -> list[AftercareTask]:
    """Next EVERGREEN_HORIZON_YEARS anniversaries, cycling through the template's tasks.

    Raises:
        WorkflowError: the template has no tasks to cycle through.
    """
    if not template.tasks:
        raise WorkflowError(f"evergreen template {template.id!r} has no tasks")
    tasks: list[AftercareTask] = []
    next_year = full_years_between(settlement, today) + 1
    for i in range(EVERGREEN_HORIZON_YEARS):
        year = next_year + i
        due = add_years(settlement, year)
        if due < today:
            continue
        task = template.tasks[i % len(template.tasks)]
        tasks.append(
            AftercareTask(
                title=task.title,
                description=f"{task.description} (Year {year})".strip(),
                due_date=due,
                past_sale_id=past_sale_id,
                aftercare_year=year,
                team_id=team_id,
                assigned_to=assigned_to,
            )
        )
    return tasks


def activate_batch_aftercare(
    sales: Sequence[CommittedSale],
    template: AftercareTemplate | None,
    evergreen_template: AftercareTemplate | None,
    team_id: str,
    user_id: str | None,
    historical_mode: HistoricalMode,
    task_store: TaskStore,
    today: date | None = None,
) -> AftercareSummary:
    """Create aftercare tasks for committed sales and mark their plans active.

    Sales without a settlement date are skipped. Legacy sales fall back to the
    standard template when no evergreen template is configured. Tasks go to the
    sale's listing agent, or to ``user_id`` when the sale has none. Task rows and
    plan updates are written in one ``task_store.atomic()`` scope.

    Raises:
        WorkflowError: no template configured, a sale has nobody to assign its
            tasks to, or the task store rejected the batch.
    """
    if template is None:
        raise WorkflowError("no aftercare template configured")
    unassigned = [
        s.row_number for s in sales if s.settlement_date is not None and not (s.agent_id or user_id)
    ]
    if unassigned:
        raise WorkflowError(f"no agent or user to assign aftercare tasks for rows {unassigned}")
    today = today or date.today()

    all_tasks: list[AftercareTask] = []
    activated: list[str] = []
    historical = 0
    evergreen = 0
    for sale in sales:
        if sale.settlement_date is None:
            continue
        assignee = sale.agent_id or user_id
        category = classify_sale_age(sale.settlement_date, today)
        if category is SaleAgeCategory.LEGACY and evergreen_template is not None:
            evergreen += 1
            all_tasks.extend(
                generate_evergreen_tasks(
                    sale.past_sale_id, sale.settlement_date, evergreen_template, team_id, assignee, today
                )
            )
        else:
            plan = generate_plan_tasks(
                sale.past_sale_id,
                sale.settlement_date,
                template,
                team_id,
                assignee,
                historical_mode,
                today,
            )
            all_tasks.extend(plan.tasks)
            historical += plan.historical
        activated.append(sale.past_sale_id)

    try:
        with task_store.atomic():
            if all_tasks:
                task_store.insert_tasks(all_tasks)
            if activated:
                task_store.mark_plans_active(activated, template.id, datetime.now(UTC))
    except PersistenceError as e:
        raise WorkflowError(f"aftercare activation failed: {e}") from e

    logger.debug(
        "aftercare activated plans=%d tasks=%d historical=%d evergreen=%d",
        len(activated),
        len(all_tasks),
        historical,
        evergreen,
    )
    return AftercareSummary(
        plans_activated=len(activated),
        tasks_created=len(all_tasks),
        tasks_marked_historical=historical,
        evergreen_plans_created=evergreen,
    )
