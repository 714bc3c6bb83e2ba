from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Any

import psycopg2
from psycopg2.extras import execute_values

from ..errors import PersistenceError

"""Batched INSERT via psycopg2.extras.execute_values.

Used for aftercare task rows, which are written as one unit per activation.
Past sale rows are not batched: they are inserted one at a time so a bad row
cannot take its neighbours down with it (see store.PostgresPastSaleStore).
"""

__all__ = [
    "batch_insert",
]

DEFAULT_PAGE_SIZE = 100


def batch_insert(
    cursor: Any,
    table: str,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
    page_size: int = DEFAULT_PAGE_SIZE,
) -> int:
    """Insert ``rows`` into ``table`` and return the number of rows sent.

    Parameters
    ----------
    cursor: psycopg2 cursor
    table: target table (validated identifier from config)
    columns: column names, in the order of each row's values
    rows: row value sequences
    page_size: rows per VALUES statement

    Raises
    ------
    PersistenceError: the driver rejected a page
    """
    rows_list = [list(r) for r in rows]
    if not rows_list:
        return 0

    cols_sql = ",".join(f'"{c}"' for c in columns)
    sql = f"INSERT INTO {table} ({cols_sql}) VALUES %s"
    try:
        execute_values(cursor, sql, rows_list, page_size=page_size)
    except psycopg2.Error as e:
        raise PersistenceError(f"batch insert into {table} failed: {e}") from e
    return len(rows_list)
