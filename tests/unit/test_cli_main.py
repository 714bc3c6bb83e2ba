from __future__ import annotations

from pathlib import Path
from unittest.mock import patch

import psycopg2
import pytest

from past_sales_import.cli import main as cli_main
from past_sales_import.cli.__main__ import _resolve_dsn
from past_sales_import.models.config_models import DatabaseConfig, ImportConfig

CSV_TEXT = (
    "listing_address,status,sale_value,listing_live_date,unconditional_date,settlement_date,lost_reason\n"
    '"1 Main St, Town",sold,500000,2024-01-01,2024-02-01,2024-03-01,\n'
    '"2 High St, Town",withdrawn,,,,,Vendor stayed\n'
    '"3 Low St, Town",sold,,,,,\n'
)


@pytest.fixture()
def sales_csv(temp_workdir: Path) -> Path:
    path = temp_workdir / "data" / "sales.csv"
    path.write_text(CSV_TEXT, encoding="utf-8")
    return path


@pytest.fixture()
def mock_db(monkeypatch):
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")


def test_missing_config_is_fatal(temp_workdir: Path, capsys):
    code = cli_main(["--file", "data/sales.csv", "--team-id", "t"])
    assert code == 1
    assert "ERROR config:" in capsys.readouterr().out


def test_missing_source_is_fatal(write_config: Path, capsys):
    code = cli_main(["--team-id", "t"])
    assert code == 1
    assert "ERROR no source" in capsys.readouterr().out


def test_unreadable_file_is_fatal(write_config: Path, capsys):
    code = cli_main(["--file", "data/missing.csv", "--team-id", "t"])
    assert code == 1
    assert "ERROR Could not read file" in capsys.readouterr().out


def test_import_in_mock_mode(write_config: Path, sales_csv: Path, mock_db, capsys):
    code = cli_main(["--file", str(sales_csv), "--team-id", "t", "--user-id", "u"])
    out = capsys.readouterr().out
    assert code == 0
    assert "INFO review total=3 valid=2 warnings=0 errors=1" in out
    assert "INFO mode=mock" in out
    assert "SUMMARY total=3 successful=2 failed=0 warnings=0 skipped=1 elapsed_sec=" in out


def test_dry_run_commits_nothing(write_config: Path, sales_csv: Path, mock_db, capsys):
    code = cli_main(["--file", str(sales_csv), "--team-id", "t", "--dry-run", "--filter", "errors"])
    out = capsys.readouterr().out
    assert code == 0
    assert "INFO row 3: error 3 Low St, Town" in out
    assert "ERROR Row 3: Sale value is required for sold properties" in out
    assert "SUMMARY" not in out


def test_aftercare_activation(write_config: Path, sales_csv: Path, mock_db, capsys):
    code = cli_main(
        ["--file", str(sales_csv), "--team-id", "t", "--user-id", "u", "--activate-aftercare", "--historical-mode", "complete"]
    )
    out = capsys.readouterr().out
    assert code == 0
    assert "INFO aftercare plans=1 tasks=" in out


def test_aftercare_requires_user_id(write_config: Path, sales_csv: Path, mock_db, capsys):
    code = cli_main(["--file", str(sales_csv), "--team-id", "t", "--activate-aftercare"])
    out = capsys.readouterr().out
    assert code == 1
    assert "ERROR --user-id is required with --activate-aftercare" in out
    assert "SUMMARY" not in out


def test_partial_failure_exit_code(write_config: Path, sales_csv: Path, mock_db, capsys):
    from past_sales_import.errors import PersistenceError

    def reject_first(self, record, team_id, created_by=None):
        if record.address.startswith("1 "):
            raise PersistenceError("duplicate key")
        return "ok"

    with patch("past_sales_import.cli.__main__.InMemoryPastSaleStore.insert_past_sale", reject_first):
        code = cli_main(["--file", str(sales_csv), "--team-id", "t"])
    out = capsys.readouterr().out
    assert code == 2
    assert "SUMMARY total=3 successful=1 failed=1" in out
    logs = list(Path("logs").glob("errors-*.log"))
    assert len(logs) == 1


def test_no_valid_rows_is_fatal(write_config: Path, temp_workdir: Path, mock_db, capsys):
    path = temp_workdir / "data" / "bad.csv"
    path.write_text("listing_address,status\n1 Main St,pending\n", encoding="utf-8")
    assert cli_main(["--file", str(path), "--team-id", "t"]) == 1
    assert "ERROR no valid rows to import" in capsys.readouterr().out


def test_db_connect_failure_falls_back_to_mock(write_config: Path, sales_csv: Path, monkeypatch, capsys):
    monkeypatch.delenv("DISABLE_DB_CONNECT", raising=False)
    with patch(
        "past_sales_import.cli.__main__._connect", side_effect=psycopg2.OperationalError("refused")
    ):
        code = cli_main(["--file", str(sales_csv), "--team-id", "t"])
    out = capsys.readouterr().out
    assert code == 0
    assert "DB connection failed -> fallback to mock mode" in out
    assert "INFO mode=mock" in out


def test_write_template(temp_workdir: Path, capsys):
    code = cli_main(["--write-template", "data"])
    assert code == 0
    assert (temp_workdir / "data" / "past_sales_template.csv").exists()


def test_debug_flag(write_config: Path, sales_csv: Path, mock_db, capsys):
    code = cli_main(["--debug", "--file", str(sales_csv), "--team-id", "t"])
    assert code == 0
    assert "DEBUG debug mode enabled" in capsys.readouterr().out


def test_resolve_dsn_precedence(monkeypatch):
    cfg = ImportConfig(database=DatabaseConfig(host="cfg-host", port=5433, user="cfg", database="cfgdb"))
    for var in ("DATABASE_URL", "PGDSN", "PGHOST", "PGPORT", "PGUSER", "PGPASSWORD", "PGDATABASE"):
        monkeypatch.delenv(var, raising=False)
    assert _resolve_dsn(cfg) == "host=cfg-host port=5433 user=cfg dbname=cfgdb"

    monkeypatch.setenv("PGHOST", "env-host")
    assert _resolve_dsn(cfg).startswith("host=env-host ")

    monkeypatch.setenv("DATABASE_URL", "postgresql://env/db")
    assert _resolve_dsn(cfg) == "postgresql://env/db"
