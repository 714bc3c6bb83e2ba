from __future__ import annotations

from pathlib import Path

import httpx
import pytest

from past_sales_import.db.store import InMemoryPastSaleStore, InMemoryTaskStore
from past_sales_import.errors import FetchError, InvalidTransitionError, ParseError
from past_sales_import.models.aftercare import AftercareImportOptions, HistoricalMode
from past_sales_import.services.review import FilterMode
from past_sales_import.services.session import TRANSITIONS, ImportSession, ImportStep
from past_sales_import.sources.google_sheets import GoogleSheetsFetcher

CSV_TEXT = (
    "listing_address,status,sale_value,listing_live_date,unconditional_date,settlement_date,lost_reason\n"
    '"1 Main St, Town",sold,500000,2024-01-01,2024-02-01,2024-03-01,\n'
    '"2 High St, Town",withdrawn,,,,,\n'
    '"3 Low St, Town",sold,,,,,\n'
)


@pytest.fixture()
def csv_path(temp_workdir: Path) -> Path:
    path = temp_workdir / "data" / "sales.csv"
    path.write_text(CSV_TEXT, encoding="utf-8")
    return path


@pytest.fixture()
def previewed(csv_path: Path) -> ImportSession:
    session = ImportSession("team-1", user_id="user-1")
    session.load_csv(csv_path)
    return session


def test_transition_table_has_a_single_backward_edge():
    order = list(ImportStep)
    backward = [
        (src, dst) for src, targets in TRANSITIONS.items() for dst in targets if order.index(dst) < order.index(src)
    ]
    assert backward == [(ImportStep.AFTERCARE, ImportStep.PREVIEW)]


def test_load_csv_moves_to_preview(previewed: ImportSession):
    assert previewed.step is ImportStep.PREVIEW
    assert previewed.source_name == "sales.csv"
    counts = previewed.counts
    assert (counts.total, counts.valid, counts.warnings, counts.errors) == (3, 2, 1, 1)
    notice = previewed.notices[-1]
    assert notice.title == "CSV parsed successfully"
    assert notice.description == "Found 3 records to review"


def test_parse_failure_stays_in_upload(temp_workdir: Path):
    path = temp_workdir / "data" / "empty.csv"
    path.write_text("listing_address,status\n", encoding="utf-8")
    session = ImportSession("team-1")
    with pytest.raises(ParseError):
        session.load_csv(path)
    assert session.step is ImportStep.UPLOAD
    assert session.notices[-1].variant == "destructive"
    assert session.notices[-1].title == "No records found"


def test_empty_sheet_url_is_rejected():
    session = ImportSession("team-1")
    with pytest.raises(FetchError):
        session.load_google_sheet("   ")
    assert session.step is ImportStep.UPLOAD
    assert session.notices[-1].title == "URL required"


def test_load_google_sheet():
    client = httpx.Client(
        transport=httpx.MockTransport(
            lambda request: httpx.Response(200, text=CSV_TEXT, headers={"content-type": "text/csv"})
        )
    )
    session = ImportSession("team-1", fetcher=GoogleSheetsFetcher(client=client))
    rows = session.load_google_sheet("https://docs.google.com/spreadsheets/d/abc123/edit")
    assert len(rows) == 3
    assert session.step is ImportStep.PREVIEW
    assert session.notices[-1].title == "Google Sheet parsed successfully"


def test_illegal_moves_raise(previewed: ImportSession):
    with pytest.raises(InvalidTransitionError):
        previewed.back_to_preview()
    with pytest.raises(InvalidTransitionError):
        previewed.start_import(InMemoryPastSaleStore())
    with pytest.raises(InvalidTransitionError):
        previewed.load_csv(Path("other.csv"))
    assert previewed.step is ImportStep.PREVIEW


def test_back_to_preview_keeps_rows_and_filter(previewed: ImportSession):
    previewed.toggle_filter(FilterMode.ERRORS)
    previewed.continue_to_aftercare()
    previewed.back_to_preview()
    assert previewed.step is ImportStep.PREVIEW
    assert [r.row_number for r in previewed.visible_rows] == [3]


def test_full_flow_and_reset(previewed: ImportSession):
    previewed.continue_to_aftercare()
    previewed.set_aftercare_options(AftercareImportOptions(activate_aftercare=False))
    store = InMemoryPastSaleStore()
    outcome = previewed.start_import(store, task_store=InMemoryTaskStore())

    assert previewed.step is ImportStep.COMPLETE
    assert outcome.summary.successful == 2
    assert outcome.summary.skipped == 1
    assert previewed.summary == outcome.summary
    assert len(store.records) == 2
    assert previewed.notices[-1].title == "Import complete"

    with pytest.raises(InvalidTransitionError):
        previewed.back_to_preview()

    previewed.reset()
    assert previewed.step is ImportStep.UPLOAD
    assert previewed.rows == []
    assert previewed.summary is None
    assert previewed.options == AftercareImportOptions()


def test_aftercare_failure_notice(previewed: ImportSession):
    previewed.continue_to_aftercare()
    previewed.set_aftercare_options(
        AftercareImportOptions(activate_aftercare=True, historical_mode=HistoricalMode.COMPLETE)
    )
    outcome = previewed.start_import(InMemoryPastSaleStore(), task_store=InMemoryTaskStore(), template=None)
    assert outcome.summary.successful == 2
    assert outcome.aftercare_error == "no aftercare template configured"
    assert previewed.notices[-1].title == "Failed to activate aftercare plans"
    assert previewed.step is ImportStep.COMPLETE


def test_options_only_change_in_aftercare_step(previewed: ImportSession):
    with pytest.raises(InvalidTransitionError):
        previewed.set_aftercare_options(AftercareImportOptions(activate_aftercare=True))
