from __future__ import annotations

from dataclasses import dataclass, field

from .aftercare import AftercareTemplate

"""Config dataclasses for the past sales importer.

Built by past_sales_import.config.loader from config/import.yml after schema
validation. Environment variables take precedence over the database section.
"""

DEFAULT_DATE_FORMATS: tuple[str, ...] = ("%Y-%m-%d", "%d/%m/%Y", "%d-%m-%Y")


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection fallback used when no DATABASE_URL / PG* variables are set."""
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class TableConfig:
    past_sales: str = "past_sales"
    tasks: str = "tasks"


@dataclass(frozen=True)
class GoogleSheetsConfig:
    timeout_seconds: float = 15.0


@dataclass(frozen=True)
class AftercareConfig:
    template: AftercareTemplate | None = None
    evergreen_template: AftercareTemplate | None = None


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for an import run."""
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    tables: TableConfig = field(default_factory=TableConfig)
    date_formats: tuple[str, ...] = DEFAULT_DATE_FORMATS
    google_sheets: GoogleSheetsConfig = field(default_factory=GoogleSheetsConfig)
    aftercare: AftercareConfig = field(default_factory=AftercareConfig)
