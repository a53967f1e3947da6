from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path
from typing import Any, Protocol

import pandas as pd
from openpyxl import Workbook, load_workbook
from openpyxl.utils.cell import coordinate_to_tuple, range_boundaries
from openpyxl.worksheet.worksheet import Worksheet

from audit_reports.excel.values import is_blank

"""Workbook-backed tabular store.

The jobs only need a narrow surface of the spreadsheet: read a whole sheet,
read an A1 range or a single cell, append rows, write a block or a single
cell. TabularStore names that surface; WorkbookStore implements it over a
local .xlsx file with openpyxl.

Two copies of the workbook are kept: a data_only copy for reads (formula
cells resolve to their cached values) and a formula copy that receives writes
and is the one saved, so formulas in the workbook survive a save. Writes are
mirrored into the read copy so a job sees its own writes.
"""

__all__ = [
    "StoreError",
    "SheetNotFoundError",
    "TabularStore",
    "WorkbookStore",
]


class StoreError(Exception):
    """Raised when the workbook cannot be opened or saved."""


class SheetNotFoundError(StoreError):
    """Raised when a required sheet is missing from the workbook."""


class TabularStore(Protocol):
    def has_sheet(self, sheet: str) -> bool: ...
    def ensure_sheet(self, sheet: str) -> None: ...
    def read_sheet(self, sheet: str) -> pd.DataFrame: ...
    def get_range(self, sheet: str, a1_range: str) -> list[list[Any]]: ...
    def get_cell(self, sheet: str, a1_ref: str) -> Any: ...
    def last_row(self, sheet: str) -> int: ...
    def append_rows(self, sheet: str, rows: Sequence[Sequence[Any]]) -> None: ...
    def set_range(self, sheet: str, start_row: int, start_col: int, rows: Sequence[Sequence[Any]]) -> None: ...
    def set_cell(self, sheet: str, a1_ref: str, value: Any) -> None: ...
    def save(self) -> None: ...


def _clean(value: Any) -> Any:
    # NaN / NaT はセルに書けないので None (空セル) に寄せる
    return None if is_blank(value) else value


class WorkbookStore:
    """TabularStore over a local .xlsx workbook."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        self._values: Workbook | None = None
        self._formulas: Workbook | None = None
        self._dirty = False

    # -- loading ---------------------------------------------------------
    def _load(self) -> None:
        if self._values is not None:
            return
        if not self.path.exists():
            raise StoreError(f"workbook not found: {self.path}")
        try:
            self._values = load_workbook(self.path, data_only=True)
            self._formulas = load_workbook(self.path)
        except (OSError, ValueError, KeyError) as e:
            raise StoreError(f"cannot open workbook {self.path}: {e}") from e

    def _sheets(self, sheet: str) -> tuple[Worksheet, Worksheet]:
        self._load()
        assert self._values is not None and self._formulas is not None
        if sheet not in self._values.sheetnames:
            raise SheetNotFoundError(f"sheet '{sheet}' not found in {self.path.name}")
        return self._values[sheet], self._formulas[sheet]

    def has_sheet(self, sheet: str) -> bool:
        self._load()
        assert self._values is not None
        return sheet in self._values.sheetnames

    def ensure_sheet(self, sheet: str) -> None:
        """Create an empty sheet if the workbook does not have one yet."""
        if self.has_sheet(sheet):
            return
        assert self._values is not None and self._formulas is not None
        self._values.create_sheet(sheet)
        self._formulas.create_sheet(sheet)
        self._dirty = True

    # -- reads -----------------------------------------------------------
    def read_sheet(self, sheet: str) -> pd.DataFrame:
        """Whole used range of a sheet, no header applied (row 1 = index 0).

        Blank cells are None; rows are padded to the sheet's used width.
        """
        ws, _ = self._sheets(sheet)
        rows = [list(r) for r in ws.iter_rows(min_row=1, min_col=1, values_only=True)]
        return pd.DataFrame(rows, dtype=object)

    def get_range(self, sheet: str, a1_range: str) -> list[list[Any]]:
        ws, _ = self._sheets(sheet)
        min_col, min_row, max_col, max_row = range_boundaries(a1_range)
        return [
            list(r)
            for r in ws.iter_rows(
                min_row=min_row, max_row=max_row, min_col=min_col, max_col=max_col, values_only=True
            )
        ]

    def get_cell(self, sheet: str, a1_ref: str) -> Any:
        ws, _ = self._sheets(sheet)
        return ws[a1_ref].value

    def last_row(self, sheet: str) -> int:
        """1-based index of the last row holding any value; 0 for an empty sheet."""
        ws, _ = self._sheets(sheet)
        for row_idx in range(ws.max_row, 0, -1):
            if any(not is_blank(c.value) for c in ws[row_idx]):
                return row_idx
        return 0

    # -- writes ----------------------------------------------------------
    def set_range(self, sheet: str, start_row: int, start_col: int, rows: Sequence[Sequence[Any]]) -> None:
        """Write a block of values with its top-left cell at (start_row, start_col), 1-based."""
        targets = self._sheets(sheet)
        for r_off, row in enumerate(rows):
            for c_off, value in enumerate(row):
                for ws in targets:
                    ws.cell(row=start_row + r_off, column=start_col + c_off, value=_clean(value))
        if rows:
            self._dirty = True

    def append_rows(self, sheet: str, rows: Sequence[Sequence[Any]]) -> None:
        """Bulk write rows directly below the last used row."""
        if not rows:
            return
        self.set_range(sheet, self.last_row(sheet) + 1, 1, rows)

    def set_cell(self, sheet: str, a1_ref: str, value: Any) -> None:
        row, col = coordinate_to_tuple(a1_ref)
        self.set_range(sheet, row, col, [[value]])

    def save(self) -> None:
        """Persist pending writes (no-op when nothing changed)."""
        if not self._dirty or self._formulas is None:
            return
        try:
            self._formulas.save(self.path)
        except OSError as e:
            raise StoreError(f"cannot save workbook {self.path}: {e}") from e
        self._dirty = False
