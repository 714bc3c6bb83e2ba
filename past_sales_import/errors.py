"""
Exception hierarchy for the past sales import pipeline.

Acquisition failures (ParseError, FetchError) abort the current step.
ValidationError never escapes the validator; it is turned into a row Issue.
PersistenceError is row-scoped, WorkflowError is batch-scoped.
"""

from __future__ import annotations


class PastSalesImportError(Exception):
    """Base exception for the import pipeline"""
    pass


class ConfigError(PastSalesImportError):
    """Raised when config/import.yml is missing or invalid"""
    pass


class ParseError(PastSalesImportError):
    """Raised when a delimited source cannot be turned into rows.

    ``kind`` is one of ``unreadable``, ``empty`` or ``malformed``.
    """

    TITLES = {
        "unreadable": "Could not read file",
        "empty": "No records found",
        "malformed": "Malformed CSV format",
    }

    def __init__(self, message: str, kind: str = "malformed") -> None:
        super().__init__(message)
        self.kind = kind

    @property
    def title(self) -> str:
        return self.TITLES.get(self.kind, "Failed to parse CSV")


class FetchError(PastSalesImportError):
    """Raised when a remote spreadsheet cannot be retrieved.

    ``kind`` is one of ``invalid_url``, ``permission``, ``not_found`` or ``network``.
    """

    TITLES = {
        "invalid_url": "Invalid Google Sheets URL",
        "permission": "Google Sheet is not shared publicly",
        "not_found": "Google Sheet not found",
        "network": "Failed to fetch Google Sheet",
    }

    def __init__(self, message: str, kind: str = "network") -> None:
        super().__init__(message)
        self.kind = kind

    @property
    def title(self) -> str:
        return self.TITLES.get(self.kind, "Failed to fetch Google Sheet")


class ValidationError(PastSalesImportError):
    """Raised by a field parser when a cell cannot be converted"""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field


class PersistenceError(PastSalesImportError):
    """Raised when the store rejects a record"""
    pass


class WorkflowError(PastSalesImportError):
    """Raised when aftercare activation fails for the batch"""
    pass


class InvalidTransitionError(PastSalesImportError):
    """Raised when the import session is asked to move along an illegal edge"""
    pass
