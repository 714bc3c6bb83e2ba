from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Commit progress display with tqdm (TTY only).

- Single tqdm instance, disabled in non-TTY environments (CI, piped output)
- One tick per submitted row; postfix carries successful/failed counts
"""

__all__ = [
    "CommitProgress",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    """True if stdout is a TTY and the progress bar should be drawn."""
    return sys.stdout.isatty()


class CommitProgress:
    """Row-level progress for the commit loop.

    Always tracks the completed count so ``percent`` can feed the operator's
    progress callback even when no bar is drawn.
    """

    def __init__(self, total_rows: int, *, description: str = "Importing past sales") -> None:
        self.total_rows = total_rows
        self.description = description
        self.completed = 0

        self.enabled = is_tty_enabled() and total_rows > 0
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_rows,
                desc=description,
                unit="row",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    @property
    def percent(self) -> int:
        if self.total_rows == 0:
            return 100
        return round(self.completed / self.total_rows * 100)

    def advance(self, **postfix: Any) -> int:
        """Record one finished row and return the new percentage."""
        self.completed += 1
        if self.enabled and self.pbar is not None:
            self.pbar.update(1)
            if postfix:
                self.pbar.set_postfix(**postfix)
        return self.percent

    def close(self) -> None:
        if self.enabled and self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> CommitProgress:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
