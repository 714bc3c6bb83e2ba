"""Domain models for the past sales import pipeline.

Raw source rows, validated past sale records, review/commit results,
aftercare templates and configuration.
"""

from .aftercare import (
    AftercareImportOptions,
    AftercareTask,
    AftercareTaskTemplate,
    AftercareTemplate,
    HistoricalMode,
    SaleAgeCategory,
    TimingType,
)
from .config_models import DatabaseConfig, ImportConfig
from .import_summary import AftercareSummary, CommitResult, CommittedSale, ImportSummary
from .notice import Notice
from .past_sale import REQUIRED_FIELDS_BY_STATUS, ContactDetails, PastSaleRecord, SaleStatus
from .raw_row import RawRow, SourceTable
from .validated_row import Issue, RowBucket, Severity, ValidatedRow

__all__ = [
    # Source
    "RawRow",
    "SourceTable",
    # Validation
    "SaleStatus",
    "ContactDetails",
    "PastSaleRecord",
    "REQUIRED_FIELDS_BY_STATUS",
    "Severity",
    "Issue",
    "RowBucket",
    "ValidatedRow",
    # Commit
    "ImportSummary",
    "CommittedSale",
    "CommitResult",
    "AftercareSummary",
    # Aftercare
    "TimingType",
    "HistoricalMode",
    "SaleAgeCategory",
    "AftercareTaskTemplate",
    "AftercareTemplate",
    "AftercareTask",
    "AftercareImportOptions",
    # Session / config
    "Notice",
    "DatabaseConfig",
    "ImportConfig",
]
