from __future__ import annotations

from datetime import datetime
from pathlib import Path

import pytest
from openpyxl import Workbook, load_workbook

from audit_reports.excel.workbook import SheetNotFoundError, StoreError, WorkbookStore


@pytest.fixture()
def book(make_workbook, tmp_path: Path) -> Path:
    return make_workbook(tmp_path / "book.xlsx", {
        "source_02": [
            ["Timestamp", "Email"],
            [datetime(2025, 1, 1, 9), "a@example.com"],
            [datetime(2025, 1, 2, 9), None],
        ],
        "last_audit": [[None, None, "Week 41"], [None, "T-001"]],
    })


def test_read_sheet_keeps_raw_values(book: Path):
    frame = WorkbookStore(book).read_sheet("source_02")
    assert frame.shape == (3, 2)
    assert frame.iat[0, 0] == "Timestamp"
    assert frame.iat[1, 0] == datetime(2025, 1, 1, 9)
    assert frame.iat[2, 1] is None


def test_cells_and_ranges(book: Path):
    store = WorkbookStore(book)
    assert store.get_cell("last_audit", "C1") == "Week 41"
    assert store.get_cell("last_audit", "Z9") is None
    assert store.get_range("last_audit", "A1:C2") == [[None, None, "Week 41"], [None, "T-001", None]]


def test_missing_sheet_and_missing_file(book: Path, tmp_path: Path):
    with pytest.raises(SheetNotFoundError, match="dept_emails"):
        WorkbookStore(book).read_sheet("dept_emails")
    with pytest.raises(StoreError, match="workbook not found"):
        WorkbookStore(tmp_path / "nope.xlsx").read_sheet("source_02")


def test_append_and_save_round_trip(book: Path):
    store = WorkbookStore(book)
    store.ensure_sheet("flattern_audit")
    assert store.last_row("flattern_audit") == 0
    store.set_range("flattern_audit", 1, 1, [["Timestamp", "Ref"]])
    store.append_rows("flattern_audit", [["t1", "T-1"], ["t2", "T-2"]])
    store.set_cell("flattern_audit", "Z1", "t2")
    # 書き込みは保存前でも読み取り側に反映される
    assert store.last_row("flattern_audit") == 3
    assert store.get_cell("flattern_audit", "A3") == "t2"
    store.save()

    ws = load_workbook(book)["flattern_audit"]
    assert [c.value for c in ws[2]][:2] == ["t1", "T-1"]
    assert ws["Z1"].value == "t2"


def test_save_preserves_formulas(tmp_path: Path):
    path = tmp_path / "formulas.xlsx"
    wb = Workbook()
    ws = wb.active
    ws.title = "last_audit"
    ws["A1"] = 1
    ws["B1"] = "=A1+1"
    wb.save(path)

    store = WorkbookStore(path)
    store.set_cell("last_audit", "C1", "touched")
    store.save()

    reopened = load_workbook(path)["last_audit"]
    assert reopened["B1"].value == "=A1+1"
    assert reopened["C1"].value == "touched"


def test_save_without_changes_is_a_noop(book: Path):
    before = book.stat().st_mtime_ns
    store = WorkbookStore(book)
    store.read_sheet("source_02")
    store.save()
    assert book.stat().st_mtime_ns == before
