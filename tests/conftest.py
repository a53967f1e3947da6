# Shared pytest fixtures
from __future__ import annotations

import tempfile
from collections.abc import Sequence
from pathlib import Path
from typing import Any

import pandas as pd
import pytest
from openpyxl.utils.cell import coordinate_to_tuple, range_boundaries

from audit_reports.excel.values import is_blank
from audit_reports.excel.workbook import SheetNotFoundError
from audit_reports.logging.init import reset_logging
from audit_reports.mail.transport import RecordingTransport


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
def clean_smtp_env(monkeypatch):
    for key in ("SMTP_HOST", "SMTP_PORT", "SMTP_USER", "SMTP_PASSWORD", "SMTP_FROM", "SMTP_FORCE_SSL"):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture()
def sample_config_yaml() -> str:
    # 小さいレイアウト (static 4 + 2 groups x 3) でテストする
    return """workbook: ./data/reports.xlsx
timezone: UTC
state_file: state/properties.json
logs_dir: logs
flatten:
  source_sheet: source_02
  target_sheet: flattern_audit
  watermark_cell: Z1
  static_columns: 4
  group_size: 3
  group_count: 2
  headers: [Timestamp, Email Address, Choose Request, Date - Monday, T Ref No., FIN-1, T Remark]
weekly_audit:
  sheet: last_audit
  timestamp_format: "%m-%d-%Y %H:%M:%S"
attendance:
  sheet: Attendance
  email_sheet: dept_emails
  cc: [hr@example.com]
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "reports.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


@pytest.fixture()
def make_workbook():
    """Write {sheet: rows} to an .xlsx with pandas (no header, no index)."""
    def _make(path: Path, sheets: dict[str, list[list[Any]]]) -> Path:
        path.parent.mkdir(parents=True, exist_ok=True)
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            for name, rows in sheets.items():
                pd.DataFrame(rows, dtype=object).to_excel(writer, sheet_name=name, header=False, index=False)
        return path
    return _make


@pytest.fixture()
def logging_reset():
    reset_logging()
    yield
    reset_logging()


class MemoryStore:
    """In-memory TabularStore: {sheet: list of rows}, row 1 = index 0."""

    def __init__(self, sheets: dict[str, list[list[Any]]] | None = None) -> None:
        self.sheets = {name: [list(r) for r in rows] for name, rows in (sheets or {}).items()}
        self.saved = False

    def _rows(self, sheet: str) -> list[list[Any]]:
        if sheet not in self.sheets:
            raise SheetNotFoundError(f"sheet '{sheet}' not found")
        return self.sheets[sheet]

    def has_sheet(self, sheet: str) -> bool:
        return sheet in self.sheets

    def ensure_sheet(self, sheet: str) -> None:
        self.sheets.setdefault(sheet, [])

    def read_sheet(self, sheet: str) -> pd.DataFrame:
        rows = self._rows(sheet)
        width = max((len(r) for r in rows), default=0)
        return pd.DataFrame([r + [None] * (width - len(r)) for r in rows], dtype=object)

    def get_cell(self, sheet: str, a1_ref: str) -> Any:
        row, col = coordinate_to_tuple(a1_ref)
        return self.get_cell_rc(sheet, row, col)

    def get_range(self, sheet: str, a1_range: str) -> list[list[Any]]:
        min_col, min_row, max_col, max_row = range_boundaries(a1_range)
        return [
            [self.get_cell_rc(sheet, r, c) for c in range(min_col, max_col + 1)]
            for r in range(min_row, max_row + 1)
        ]

    def get_cell_rc(self, sheet: str, row: int, col: int) -> Any:
        rows = self._rows(sheet)
        if row > len(rows) or col > len(rows[row - 1]):
            return None
        return rows[row - 1][col - 1]

    def last_row(self, sheet: str) -> int:
        rows = self._rows(sheet)
        for idx in range(len(rows), 0, -1):
            if any(not is_blank(v) for v in rows[idx - 1]):
                return idx
        return 0

    def set_range(self, sheet: str, start_row: int, start_col: int, rows: Sequence[Sequence[Any]]) -> None:
        target = self._rows(sheet)
        for r_off, values in enumerate(rows):
            r = start_row + r_off
            while len(target) < r:
                target.append([])
            line = target[r - 1]
            for c_off, value in enumerate(values):
                c = start_col + c_off
                while len(line) < c:
                    line.append(None)
                line[c - 1] = value

    def append_rows(self, sheet: str, rows: Sequence[Sequence[Any]]) -> None:
        if rows:
            self.set_range(sheet, self.last_row(sheet) + 1, 1, rows)

    def set_cell(self, sheet: str, a1_ref: str, value: Any) -> None:
        row, col = coordinate_to_tuple(a1_ref)
        self.set_range(sheet, row, col, [[value]])

    def save(self) -> None:
        self.saved = True


@pytest.fixture()
def memory_store():
    def _make(sheets: dict[str, list[list[Any]]] | None = None) -> MemoryStore:
        return MemoryStore(sheets)
    return _make


@pytest.fixture()
def recording_transport() -> RecordingTransport:
    return RecordingTransport()

