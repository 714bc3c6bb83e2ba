from __future__ import annotations

from dataclasses import dataclass, field

"""RawRow and SourceTable models for the past sales import.

A RawRow is one data line of the uploaded CSV (or fetched Google Sheet) zipped
against the normalised header. It is produced once by the source reader, handed
to the validator and then discarded.
"""

__all__ = [
    "RawRow",
    "SourceTable",
]


@dataclass(frozen=True)
class RawRow:
    """Single row of raw string cells keyed by normalised column name.

    ``row_number`` is the 1-based position among data rows (the header is not
    counted), matching the "Row N" prefix shown to the operator.
    """
    row_number: int
    values: dict[str, str]

    def get(self, column: str) -> str:
        """Return the trimmed cell for ``column`` or an empty string."""
        value = self.values.get(column)
        if value is None:
            return ""
        return value.strip()


@dataclass(frozen=True)
class SourceTable:
    """Rectangular result of source acquisition."""
    source_name: str  # file name or sheet URL
    columns: list[str]
    rows: list[RawRow] = field(default_factory=list)
