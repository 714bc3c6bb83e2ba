from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date

from ..db.store import PastSaleStore, TaskStore
from ..errors import PersistenceError, WorkflowError
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.aftercare import AftercareImportOptions, AftercareTemplate
from ..models.import_summary import AftercareSummary, CommitResult, CommittedSale, ImportSummary
from ..models.validated_row import ValidatedRow
from .aftercare import activate_batch_aftercare
from .progress import CommitProgress

"""Commit stage.

Valid rows are persisted one at a time. A row the store rejects is counted as
failed, logged and written to the error log; the loop carries on with the next
row. There is no batch-wide transaction and no cancellation once started.

Aftercare activation runs after the commit as an independent unit of failure:
a WorkflowError is logged and reported alongside, never folded into the
commit counts.
"""

__all__ = [
    "ProgressCallback",
    "ImportOutcome",
    "commit_rows",
    "run_import",
]

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[int], None]


@dataclass(frozen=True)
class ImportOutcome:
    commit: CommitResult
    aftercare: AftercareSummary | None = None
    aftercare_error: str | None = None

    @property
    def summary(self) -> ImportSummary:
        return self.commit.summary


def commit_rows(
    rows: Sequence[ValidatedRow],
    team_id: str,
    store: PastSaleStore,
    *,
    created_by: str | None = None,
    progress_callback: ProgressCallback | None = None,
    error_log: ErrorLogBuffer | None = None,
    source: str = "<import>",
) -> CommitResult:
    """Persist the valid rows of ``rows``.

    Args:
        rows: validated rows from the review stage; invalid rows are skipped
        team_id: owning team for every record
        store: persistence collaborator
        created_by: user id stamped on every record
        progress_callback: receives the integer percentage after each row
        error_log: buffer for PERSISTENCE_ERROR records
        source: file name / sheet URL for error records

    Returns:
        CommitResult with the summary and the committed sale ids
    """
    start = time.perf_counter()
    valid_rows = [r for r in rows if r.valid]
    committed: list[CommittedSale] = []
    failed = 0

    with CommitProgress(len(valid_rows)) as progress:
        for row in valid_rows:
            try:
                past_sale_id = store.insert_past_sale(row.record, team_id, created_by)
            except PersistenceError as e:
                failed += 1
                logger.error("row %d: %s", row.row_number, e)
                if error_log is not None:
                    error_log.append(
                        ErrorRecord.create(source, row.row_number, "PERSISTENCE_ERROR", str(e))
                    )
            else:
                committed.append(
                    CommittedSale(
                        past_sale_id=past_sale_id,
                        row_number=row.row_number,
                        settlement_date=row.record.settlement_date,
                        agent_id=row.record.agent_id,
                    )
                )
            percent = progress.advance(successful=len(committed), failed=failed)
            if progress_callback is not None:
                progress_callback(percent)

    summary = ImportSummary(
        total=len(rows),
        successful=len(committed),
        failed=failed,
        warnings=sum(1 for r in valid_rows if r.warnings),
        skipped=len(rows) - len(valid_rows),
    )
    if summary.successful:
        logger.info("Successfully imported %d records", summary.successful)
    return CommitResult(
        summary=summary,
        committed=committed,
        elapsed_seconds=time.perf_counter() - start,
    )


def run_import(
    rows: Sequence[ValidatedRow],
    team_id: str,
    store: PastSaleStore,
    options: AftercareImportOptions,
    *,
    task_store: TaskStore | None = None,
    template: AftercareTemplate | None = None,
    evergreen_template: AftercareTemplate | None = None,
    user_id: str | None = None,
    today: date | None = None,
    progress_callback: ProgressCallback | None = None,
    error_log: ErrorLogBuffer | None = None,
    source: str = "<import>",
) -> ImportOutcome:
    """Commit the rows, then activate aftercare when requested and something was committed."""
    result = commit_rows(
        rows,
        team_id,
        store,
        created_by=user_id,
        progress_callback=progress_callback,
        error_log=error_log,
        source=source,
    )
    if not options.activate_aftercare or result.summary.successful == 0:
        return ImportOutcome(commit=result)

    try:
        if task_store is None:
            raise WorkflowError("no task store available for aftercare activation")
        aftercare = activate_batch_aftercare(
            result.committed,
            template,
            evergreen_template,
            team_id,
            user_id,
            options.historical_mode,
            task_store,
            today=today,
        )
    except WorkflowError as e:
        logger.error("Failed to activate aftercare plans: %s", e)
        if error_log is not None:
            error_log.append(ErrorRecord.create(source, -1, "WORKFLOW_ERROR", str(e)))
        return ImportOutcome(commit=result, aftercare_error=str(e))

    message = f"{aftercare.plans_activated} aftercare plans activated"
    if aftercare.evergreen_plans_created:
        message += f" ({aftercare.evergreen_plans_created} evergreen)"
    logger.info(message)
    return ImportOutcome(commit=result, aftercare=aftercare)
