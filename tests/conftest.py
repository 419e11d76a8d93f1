from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path
from typing import Any, Iterable, Sequence

import pytest
from openpyxl import Workbook

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

# Keep test logs out of the user's home directory.
os.environ.setdefault("SHEETFLOW_LOG_DIR", tempfile.mkdtemp(prefix="sheetflow-logs-"))


def write_workbook(path: Path, sheets: dict[str, Iterable[Sequence[Any]]], active: str | None = None) -> Path:
    """Create an .xlsx file with one worksheet per entry in ``sheets``."""

    wb = Workbook()
    wb.remove(wb.active)
    for title, rows in sheets.items():
        ws = wb.create_sheet(title)
        for row in rows:
            ws.append(list(row))
    if active is not None:
        wb.active = wb.sheetnames.index(active)
    path.parent.mkdir(parents=True, exist_ok=True)
    wb.save(path)
    return path


PEOPLE_ROWS = [
    ["Name", "Age"],
    ["Alice", 30],
    ["Bob", 25],
    [None, 99],
]

SETTINGS_ROWS = [
    ["Setting", "Value"],
    ["a", 1],
    ["b", 2],
    ["a", 3],
    [None, 4],
]


@pytest.fixture
def people_workbook(tmp_path: Path) -> Path:
    return write_workbook(
        tmp_path / "people.xlsx",
        {"People": PEOPLE_ROWS, "Settings": SETTINGS_ROWS},
        active="People",
    )


@pytest.fixture
def workbook_factory(tmp_path: Path):
    def _factory(name: str, sheets: dict[str, Iterable[Sequence[Any]]], active: str | None = None) -> Path:
        return write_workbook(tmp_path / name, sheets, active=active)

    return _factory
