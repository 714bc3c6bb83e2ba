from __future__ import annotations

import uuid
from collections.abc import Iterator, Sequence
from contextlib import AbstractContextManager, contextmanager
from dataclasses import asdict
from datetime import datetime
from typing import Any, Protocol

import psycopg2
from psycopg2.extras import Json

from ..errors import PersistenceError
from ..models.aftercare import AftercareTask
from ..models.past_sale import PastSaleRecord
from .batch_insert import batch_insert

"""Persistence collaborators for the import.

Two protocols cover what the pipeline needs from the backend:

- PastSaleStore: one call per committed row, returning the new record id
- TaskStore: aftercare task rows plus the plan-status update on past_sales,
  written together inside ``atomic()``

Postgres implementations run on a psycopg2 cursor whose connection is owned by
the caller (the CLI opens it, commits it and closes it). In-memory
implementations back the CLI's mock mode and the tests.
"""

__all__ = [
    "PastSaleStore",
    "TaskStore",
    "PostgresPastSaleStore",
    "PostgresTaskStore",
    "InMemoryPastSaleStore",
    "InMemoryTaskStore",
    "TASK_COLUMNS",
]

TASK_COLUMNS: tuple[str, ...] = (
    "title",
    "description",
    "due_date",
    "aftercare_due_date",
    "past_sale_id",
    "aftercare_year",
    "team_id",
    "assigned_to",
    "created_by",
    "completed",
    "completed_at",
    "historical_skip",
)


class PastSaleStore(Protocol):
    def insert_past_sale(
        self, record: PastSaleRecord, team_id: str, created_by: str | None = None
    ) -> str:
        """Persist one record and return its id; raise PersistenceError on rejection."""
        ...


class TaskStore(Protocol):
    def atomic(self) -> AbstractContextManager[None]:
        """Scope in which insert_tasks and mark_plans_active succeed or fail together."""
        ...

    def insert_tasks(self, tasks: Sequence[AftercareTask]) -> int:
        ...

    def mark_plans_active(
        self, past_sale_ids: Sequence[str], template_id: str, started_at: datetime
    ) -> None:
        ...


def _task_row(task: AftercareTask) -> list[Any]:
    return [
        task.title,
        task.description,
        task.due_date,
        task.due_date,
        task.past_sale_id,
        task.aftercare_year,
        task.team_id,
        task.assigned_to,
        task.assigned_to,
        task.completed,
        task.completed_at,
        task.historical_skip,
    ]


class PostgresPastSaleStore:
    """Insert past sales one row at a time inside a per-row SAVEPOINT.

    A rejected row is rolled back to its savepoint so the surrounding
    transaction stays usable for the remaining rows.
    """

    SAVEPOINT = "past_sale_row"

    def __init__(self, cursor: Any, table: str = "past_sales") -> None:
        self.cursor = cursor
        self.table = table

    def insert_past_sale(
        self, record: PastSaleRecord, team_id: str, created_by: str | None = None
    ) -> str:
        row = record.to_db_row()
        row["team_id"] = team_id
        row["created_by"] = created_by
        for key in ("vendor_details", "buyer_details"):
            if row[key] is not None:
                row[key] = Json(row[key])

        columns = list(row)
        cols_sql = ",".join(f'"{c}"' for c in columns)
        placeholders = ",".join(["%s"] * len(columns))
        sql = f"INSERT INTO {self.table} ({cols_sql}) VALUES ({placeholders}) RETURNING id"

        self.cursor.execute(f"SAVEPOINT {self.SAVEPOINT}")
        try:
            self.cursor.execute(sql, [row[c] for c in columns])
            returned = self.cursor.fetchone()
        except psycopg2.Error as e:
            self.cursor.execute(f"ROLLBACK TO SAVEPOINT {self.SAVEPOINT}")
            message = str(e).strip()
            if "row-level security" in message:
                message = "Permission denied: Cannot insert records"
            raise PersistenceError(message) from e
        self.cursor.execute(f"RELEASE SAVEPOINT {self.SAVEPOINT}")
        if not returned:
            raise PersistenceError(f"insert into {self.table} returned no id")
        return str(returned[0])


class PostgresTaskStore:
    """Aftercare writes on the caller's cursor.

    ``atomic`` wraps them in their own SAVEPOINT so a failed task batch is
    rolled back without aborting the transaction holding the past sale rows.
    """

    SAVEPOINT = "aftercare_batch"

    def __init__(self, cursor: Any, tasks_table: str = "tasks", past_sales_table: str = "past_sales") -> None:
        self.cursor = cursor
        self.tasks_table = tasks_table
        self.past_sales_table = past_sales_table

    @contextmanager
    def atomic(self) -> Iterator[None]:
        self.cursor.execute(f"SAVEPOINT {self.SAVEPOINT}")
        try:
            yield
        except (PersistenceError, psycopg2.Error):
            self.cursor.execute(f"ROLLBACK TO SAVEPOINT {self.SAVEPOINT}")
            raise
        self.cursor.execute(f"RELEASE SAVEPOINT {self.SAVEPOINT}")

    def insert_tasks(self, tasks: Sequence[AftercareTask]) -> int:
        return batch_insert(
            self.cursor,
            self.tasks_table,
            TASK_COLUMNS,
            (_task_row(t) for t in tasks),
        )

    def mark_plans_active(
        self, past_sale_ids: Sequence[str], template_id: str, started_at: datetime
    ) -> None:
        if not past_sale_ids:
            return
        sql = (
            f"UPDATE {self.past_sales_table} "
            "SET aftercare_template_id = %s, aftercare_started_at = %s, aftercare_status = 'active' "
            "WHERE id = ANY(%s)"
        )
        try:
            self.cursor.execute(sql, (template_id, started_at, list(past_sale_ids)))
        except psycopg2.Error as e:
            raise PersistenceError(f"aftercare status update failed: {e}") from e


class InMemoryPastSaleStore:
    """Keeps committed records in a dict keyed by generated id."""

    def __init__(self) -> None:
        self.records: dict[str, dict[str, Any]] = {}

    def insert_past_sale(
        self, record: PastSaleRecord, team_id: str, created_by: str | None = None
    ) -> str:
        new_id = str(uuid.uuid4())
        row = record.to_db_row()
        row.update(id=new_id, team_id=team_id, created_by=created_by)
        self.records[new_id] = row
        return new_id


class InMemoryTaskStore:
    def __init__(self) -> None:
        self.tasks: list[dict[str, Any]] = []
        self.active_plans: dict[str, str] = {}  # past_sale_id -> template_id

    @contextmanager
    def atomic(self) -> Iterator[None]:
        tasks, plans = list(self.tasks), dict(self.active_plans)
        try:
            yield
        except PersistenceError:
            self.tasks, self.active_plans = tasks, plans
            raise

    def insert_tasks(self, tasks: Sequence[AftercareTask]) -> int:
        self.tasks.extend(asdict(t) for t in tasks)
        return len(tasks)

    def mark_plans_active(
        self, past_sale_ids: Sequence[str], template_id: str, started_at: datetime
    ) -> None:
        for past_sale_id in past_sale_ids:
            self.active_plans[past_sale_id] = template_id
