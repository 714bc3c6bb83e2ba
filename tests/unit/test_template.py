from __future__ import annotations

from pathlib import Path

from past_sales_import.services.template import (
    TEMPLATE_FILENAME,
    TEMPLATE_HEADERS,
    TEMPLATE_NOTES,
    build_template_csv,
    write_template,
)


def test_template_layout():
    lines = build_template_csv().splitlines()
    assert lines[0] == ",".join(TEMPLATE_HEADERS)
    assert lines[1].startswith('"26 Milan Drive, Glen Eden",Glen Eden,sold,')
    assert lines[2].startswith('"42 Beach Road, Piha",Piha,withdrawn,')
    assert lines[3] == ""
    assert tuple(lines[4:]) == TEMPLATE_NOTES


def test_write_template_into_directory(temp_workdir: Path):
    path = write_template(temp_workdir / "data")
    assert path.name == TEMPLATE_FILENAME
    assert path.read_text(encoding="utf-8") == build_template_csv()


def test_write_template_to_file(temp_workdir: Path):
    target = temp_workdir / "my_template.csv"
    assert write_template(target) == target
    assert target.exists()
