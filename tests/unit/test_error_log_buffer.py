from __future__ import annotations

import json
from pathlib import Path

from past_sales_import.logging.error_log import ErrorLogBuffer, ErrorRecord

KEYS = {"timestamp", "source", "row", "error_type", "message"}


def test_error_record_creation_and_json_line():
    rec = ErrorRecord.create("sales.csv", 10, "PERSISTENCE_ERROR", "duplicate key")
    data = json.loads(rec.to_json_line())
    assert data["source"] == "sales.csv"
    assert data["row"] == 10
    assert data["error_type"] == "PERSISTENCE_ERROR"
    assert data["timestamp"].endswith("Z")
    assert set(data) == KEYS


def test_error_log_buffer_flush(temp_workdir: Path):
    buf = ErrorLogBuffer()
    buf.append(ErrorRecord.create("sales.csv", 1, "PERSISTENCE_ERROR", "dup"))
    buf.append(ErrorRecord.create("sales.csv", -1, "WORKFLOW_ERROR", "no template"))
    path = buf.flush()
    assert path.parent == Path("logs")
    assert path.name.startswith("errors-") and path.suffix == ".log"
    lines = path.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 2
    for raw in lines:
        assert set(json.loads(raw)) == KEYS
    assert len(buf) == 0


def test_empty_buffer_writes_nothing(temp_workdir: Path):
    assert ErrorLogBuffer().flush() is None
    assert list((temp_workdir / "logs").iterdir()) == []


def test_multiple_flushes_append_to_same_file(temp_workdir: Path):
    buf = ErrorLogBuffer(logs_dir=temp_workdir / "out")
    buf.append(ErrorRecord.create("s", 1, "PERSISTENCE_ERROR", "a"))
    path = buf.flush()
    size1 = path.stat().st_size
    buf.append(ErrorRecord.create("s", 2, "PERSISTENCE_ERROR", "b"))
    assert buf.flush() == path
    assert path.stat().st_size > size1
