# Shared pytest fixtures
from __future__ import annotations

import tempfile
from pathlib import Path

import pytest

from past_sales_import.logging.init import reset_logging
from past_sales_import.models.raw_row import RawRow
from past_sales_import.services.template import build_template_csv


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
tables:
  past_sales: past_sales
  tasks: tasks
date_formats: ["%Y-%m-%d", "%d/%m/%Y"]
google_sheets:
  timeout_seconds: 5
aftercare:
  template:
    id: tpl-standard
    name: Standard 10 year plan
    tasks:
      - title: Settlement gift
        timing_type: immediate
        days_offset: 0
      - title: One week check-in
        timing_type: immediate
        days_offset: 7
      - title: First anniversary call
        timing_type: anniversary
        anniversary_year: 1
      - title: Fifth anniversary market update
        timing_type: anniversary
        anniversary_year: 5
  evergreen_template:
    id: tpl-evergreen
    name: Evergreen
    tasks:
      - title: Annual market update
        description: Send the yearly market report
        timing_type: anniversary
        anniversary_year: 1
      - title: Anniversary card
        timing_type: anniversary
        anniversary_year: 1
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def template_csv(temp_workdir: Path) -> Path:
    path = temp_workdir / "data" / "past_sales_template.csv"
    path.write_text(build_template_csv(), encoding="utf-8")
    return path


@pytest.fixture()
def make_row():
    """Build a RawRow from keyword cells (header names are used as given)."""
    def _make(row_number: int = 1, **cells: str) -> RawRow:
        return RawRow(row_number=row_number, values=dict(cells))
    return _make


@pytest.fixture()
def sold_cells() -> dict[str, str]:
    return {
        "listing_address": "26 milan drive, glen eden",
        "status": "sold",
        "appraisal_value_low": "1100000",
        "appraisal_value_high": "1250000",
        "sale_value": "$1,180,000",
        "listing_signed_date": "2024-01-10",
        "listing_live_date": "2024-01-15",
        "unconditional_date": "2024-02-10",
        "settlement_date": "2024-03-01",
        "vendor_name": "John Smith",
        "vendor_email": "john@email.com",
        "vendor_referral_partner": "Yes",
    }


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()
