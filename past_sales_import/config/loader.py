from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..errors import ConfigError
from ..models.aftercare import AftercareTaskTemplate, AftercareTemplate, TimingType
from ..models.config_models import (
    DEFAULT_DATE_FORMATS,
    AftercareConfig,
    DatabaseConfig,
    GoogleSheetsConfig,
    ImportConfig,
    TableConfig,
)

"""Config loader.

Responsibilities:
- Load YAML config/import.yml
- Validate against the bundled config_schema.json
- Apply defaults for optional sections (tables, date_formats, google_sheets, aftercare)
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "load_config",
]

DEFAULT_CONFIG_PATH = Path("config/import.yml")
SCHEMA_PATH = Path(__file__).parent / "config_schema.json"


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: If the schema file is missing or not valid JSON, or the
            config data fails validation (missing required keys, wrong types,
            unknown keys).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _build_template(raw: dict[str, Any] | None) -> AftercareTemplate | None:
    if not raw:
        return None
    tasks = tuple(
        AftercareTaskTemplate(
            title=t["title"],
            description=t.get("description", ""),
            timing_type=TimingType(t["timing_type"]),
            days_offset=t.get("days_offset"),
            anniversary_year=t.get("anniversary_year"),
        )
        for t in raw["tasks"]
    )
    return AftercareTemplate(id=raw["id"], name=raw["name"], tasks=tasks)


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e

    _validate_config_schema(data)

    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    tables_raw = data.get("tables") or {}
    tables = TableConfig(
        past_sales=tables_raw.get("past_sales", "past_sales"),
        tasks=tables_raw.get("tasks", "tasks"),
    )
    sheets_raw = data.get("google_sheets") or {}
    aftercare_raw = data.get("aftercare") or {}
    return ImportConfig(
        database=db,
        tables=tables,
        date_formats=tuple(data.get("date_formats") or DEFAULT_DATE_FORMATS),
        google_sheets=GoogleSheetsConfig(
            timeout_seconds=float(sheets_raw.get("timeout_seconds", 15.0)),
        ),
        aftercare=AftercareConfig(
            template=_build_template(aftercare_raw.get("template")),
            evergreen_template=_build_template(aftercare_raw.get("evergreen_template")),
        ),
    )
