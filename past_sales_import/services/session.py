from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from datetime import date
from enum import Enum
from pathlib import Path

from ..db.store import PastSaleStore, TaskStore
from ..errors import FetchError, InvalidTransitionError, ParseError
from ..logging.error_log import ErrorLogBuffer
from ..models.aftercare import AftercareImportOptions, AftercareTemplate, SaleAgeCategory
from ..models.config_models import DEFAULT_DATE_FORMATS
from ..models.import_summary import ImportSummary
from ..models.notice import Notice
from ..models.raw_row import SourceTable
from ..models.validated_row import ValidatedRow
from ..sources.google_sheets import GoogleSheetsFetcher
from ..sources.reader import read_csv_file
from .aftercare import age_breakdown
from .commit import ImportOutcome, ProgressCallback, run_import
from .review import FilterMode, ReviewCounts, ReviewFilter, review_counts
from .validator import validate_rows

"""Import session: the dialog's state machine.

    upload -> preview -> aftercare -> importing -> complete
                 ^            |
                 +------------+   (the only backward edge)

Any other move raises InvalidTransitionError. ``reset()`` is not a transition:
it throws the session state away (closing the dialog) and is how the operator
starts over with a new file.
"""

__all__ = [
    "ImportStep",
    "TRANSITIONS",
    "ImportSession",
]

logger = logging.getLogger(__name__)


class ImportStep(Enum):
    UPLOAD = "upload"
    PREVIEW = "preview"
    AFTERCARE = "aftercare"
    IMPORTING = "importing"
    COMPLETE = "complete"


TRANSITIONS: dict[ImportStep, frozenset[ImportStep]] = {
    ImportStep.UPLOAD: frozenset({ImportStep.PREVIEW}),
    ImportStep.PREVIEW: frozenset({ImportStep.AFTERCARE}),
    ImportStep.AFTERCARE: frozenset({ImportStep.PREVIEW, ImportStep.IMPORTING}),
    ImportStep.IMPORTING: frozenset({ImportStep.COMPLETE}),
    ImportStep.COMPLETE: frozenset(),
}


class ImportSession:
    """One operator's pass through the past sales import.

    Holds the validated rows in memory only; nothing is persisted until
    ``start_import``.
    """

    def __init__(
        self,
        team_id: str,
        *,
        user_id: str | None = None,
        date_formats: Sequence[str] = DEFAULT_DATE_FORMATS,
        fetcher: GoogleSheetsFetcher | None = None,
    ) -> None:
        self.team_id = team_id
        self.user_id = user_id
        self.date_formats = tuple(date_formats)
        self.fetcher = fetcher or GoogleSheetsFetcher()
        self.notices: list[Notice] = []
        self._init_state()

    def _init_state(self) -> None:
        self.step = ImportStep.UPLOAD
        self.source_name: str | None = None
        self.rows: list[ValidatedRow] = []
        self.review_filter = ReviewFilter()
        self.options = AftercareImportOptions()
        self.outcome: ImportOutcome | None = None

    # -- transitions -------------------------------------------------

    def _move(self, target: ImportStep) -> None:
        if target not in TRANSITIONS[self.step]:
            raise InvalidTransitionError(f"cannot move from {self.step.value} to {target.value}")
        logger.debug("session step %s -> %s", self.step.value, target.value)
        self.step = target

    def reset(self) -> None:
        """Discard rows, options and summary and go back to upload."""
        self._init_state()

    def notify(self, title: str, description: str = "", variant: str = "default") -> Notice:
        notice = Notice(title=title, description=description, variant=variant)
        self.notices.append(notice)
        return notice

    # -- upload -> preview -------------------------------------------

    def _acquire(self, load: Callable[[], SourceTable], success_title: str) -> list[ValidatedRow]:
        if self.step is not ImportStep.UPLOAD:
            raise InvalidTransitionError(f"cannot load a source while in {self.step.value}")
        try:
            table = load()
        except (ParseError, FetchError) as e:
            logger.error("%s: %s", e.title, e)
            self.notify(e.title, str(e), variant="destructive")
            raise
        self.source_name = table.source_name
        self.rows = validate_rows(table.rows, self.date_formats)
        self._move(ImportStep.PREVIEW)
        self.notify(success_title, f"Found {len(self.rows)} records to review")
        return self.rows

    def load_csv(self, path: Path) -> list[ValidatedRow]:
        return self._acquire(lambda: read_csv_file(path), "CSV parsed successfully")

    def load_google_sheet(self, url: str) -> list[ValidatedRow]:
        if not url.strip():
            self.notify("URL required", "Please enter a Google Sheets URL", variant="destructive")
            raise FetchError("Please enter a Google Sheets URL", kind="invalid_url")
        return self._acquire(lambda: self.fetcher.fetch(url), "Google Sheet parsed successfully")

    @property
    def summary(self) -> ImportSummary | None:
        return self.outcome.summary if self.outcome is not None else None

    # -- preview -----------------------------------------------------

    @property
    def counts(self) -> ReviewCounts:
        return review_counts(self.rows)

    def toggle_filter(self, mode: FilterMode) -> FilterMode:
        return self.review_filter.toggle(mode)

    @property
    def visible_rows(self) -> list[ValidatedRow]:
        return self.review_filter.apply(self.rows)

    def continue_to_aftercare(self) -> None:
        self._move(ImportStep.AFTERCARE)

    # -- aftercare ---------------------------------------------------

    def back_to_preview(self) -> None:
        self._move(ImportStep.PREVIEW)

    def set_aftercare_options(self, options: AftercareImportOptions) -> None:
        if self.step is not ImportStep.AFTERCARE:
            raise InvalidTransitionError(f"aftercare options cannot be changed in {self.step.value}")
        self.options = options

    def age_breakdown(self, today: date | None = None) -> dict[SaleAgeCategory, int]:
        return age_breakdown(self.rows, today or date.today())

    # -- aftercare -> importing -> complete ---------------------------

    def start_import(
        self,
        store: PastSaleStore,
        *,
        task_store: TaskStore | None = None,
        template: AftercareTemplate | None = None,
        evergreen_template: AftercareTemplate | None = None,
        today: date | None = None,
        progress_callback: ProgressCallback | None = None,
        error_log: ErrorLogBuffer | None = None,
    ) -> ImportOutcome:
        self._move(ImportStep.IMPORTING)
        outcome = run_import(
            self.rows,
            self.team_id,
            store,
            self.options,
            task_store=task_store,
            template=template,
            evergreen_template=evergreen_template,
            user_id=self.user_id,
            today=today,
            progress_callback=progress_callback,
            error_log=error_log,
            source=self.source_name or "<import>",
        )
        self.outcome = outcome
        self._move(ImportStep.COMPLETE)

        summary = outcome.summary
        if summary.successful:
            self.notify("Import complete", f"Successfully imported {summary.successful} records")
        if summary.failed:
            self.notify(
                "Some records failed to import",
                f"{summary.failed} of {summary.successful + summary.failed} records were rejected",
                variant="destructive",
            )
        if outcome.aftercare_error:
            self.notify(
                "Failed to activate aftercare plans", outcome.aftercare_error, variant="destructive"
            )
        elif outcome.aftercare is not None:
            description = f"{outcome.aftercare.plans_activated} aftercare plans activated"
            if outcome.aftercare.evergreen_plans_created:
                description += f" ({outcome.aftercare.evergreen_plans_created} evergreen)"
            self.notify("Aftercare plans activated", description)
        return outcome
