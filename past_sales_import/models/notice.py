from __future__ import annotations

from dataclasses import dataclass

__all__ = [
    "Notice",
]


@dataclass(frozen=True)
class Notice:
    """Toast-style notification raised by the import session."""
    title: str
    description: str = ""
    variant: str = "default"  # default | destructive
