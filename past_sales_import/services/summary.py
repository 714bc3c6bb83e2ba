from __future__ import annotations

from ..models.import_summary import AftercareSummary, ImportSummary

"""SUMMARY line rendering for past sales imports.

Format:
    SUMMARY total={n} successful={n} failed={n} warnings={n} skipped={n} elapsed_sec={x}
    aftercare plans={n} tasks={n} historical={n} evergreen={n}   (INFO)
"""

__all__ = [
    "format_seconds",
    "render_summary_line",
    "render_aftercare_line",
]


def format_seconds(value: float) -> str:
    """Render a duration without scientific notation or trailing zeros.

    Examples:
        >>> format_seconds(0)
        '0'
        >>> format_seconds(2.0)
        '2'
        >>> format_seconds(0.0005)
        '0.0005'
    """
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation for tiny values
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return f"{value:.3f}".rstrip("0").rstrip(".")


def render_summary_line(summary: ImportSummary, elapsed_seconds: float) -> str:
    return (
        f"SUMMARY total={summary.total} "
        f"successful={summary.successful} "
        f"failed={summary.failed} "
        f"warnings={summary.warnings} "
        f"skipped={summary.skipped} "
        f"elapsed_sec={format_seconds(elapsed_seconds)}"
    )


def render_aftercare_line(summary: AftercareSummary) -> str:
    return (
        f"aftercare plans={summary.plans_activated} "
        f"tasks={summary.tasks_created} "
        f"historical={summary.tasks_marked_historical} "
        f"evergreen={summary.evergreen_plans_created}"
    )
