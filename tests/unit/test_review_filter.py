from __future__ import annotations

from past_sales_import.models.past_sale import PastSaleRecord, SaleStatus
from past_sales_import.models.validated_row import Issue, Severity, ValidatedRow
from past_sales_import.services.review import FilterMode, ReviewFilter, review_counts


def _row(n: int, *severities: Severity) -> ValidatedRow:
    issues = tuple(Issue(s, None, f"Row {n}: {s.value}") for s in severities)
    return ValidatedRow(n, PastSaleRecord(address=f"{n} Main St", status=SaleStatus.SOLD), issues)


ROWS = [
    _row(1),
    _row(2, Severity.WARNING),
    _row(3, Severity.ERROR),
    _row(4, Severity.ERROR, Severity.WARNING),
    _row(5, Severity.WARNING, Severity.WARNING),
]


def test_review_counts():
    counts = review_counts(ROWS)
    assert counts.total == 5
    assert counts.valid == 3
    assert counts.warnings == 2  # row 4 is an error row, not a warning row
    assert counts.errors == 2


def test_filter_views_preserve_order():
    f = ReviewFilter()
    assert [r.row_number for r in f.apply(ROWS)] == [1, 2, 3, 4, 5]
    f.toggle(FilterMode.WARNINGS)
    assert [r.row_number for r in f.apply(ROWS)] == [2, 5]
    f.toggle(FilterMode.ERRORS)
    assert [r.row_number for r in f.apply(ROWS)] == [3, 4]


def test_toggle_same_mode_returns_to_all():
    f = ReviewFilter()
    assert f.toggle(FilterMode.ERRORS) is FilterMode.ERRORS
    assert f.toggle(FilterMode.ERRORS) is FilterMode.ALL


def test_reset_and_empty_input():
    f = ReviewFilter(FilterMode.WARNINGS)
    f.reset()
    assert f.mode is FilterMode.ALL
    assert f.apply([]) == []
    assert review_counts([]).total == 0
