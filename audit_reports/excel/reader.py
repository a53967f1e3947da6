from __future__ import annotations

from collections.abc import Iterable, Sequence
from numbers import Number
from typing import Any

import pandas as pd

from audit_reports.excel.values import cell_text, is_blank
from audit_reports.models.attendance_record import ATTENDANCE_COLUMNS, AttendanceRecord

"""Sheet readers: header discovery, column resolution and record parsing.

The Attendance sheet carries title/period rows above its table, so the header
row is found by scanning for a sentinel label instead of assuming a fixed
position. Missing sentinel or missing required columns are fatal for the run
(typed exceptions below); blank data rows are skipped.
"""

__all__ = [
    "HeaderNotFoundError",
    "MissingColumnsError",
    "find_header_row",
    "resolve_columns",
    "normalize_value",
    "read_attendance_records",
    "read_department_emails",
    "EMAIL_SHEET_COLUMNS",
]

EMAIL_SHEET_COLUMNS: tuple[str, ...] = ("Department", "Emails")


class HeaderNotFoundError(Exception):
    """Raised when no row of the sheet contains the sentinel header label."""


class MissingColumnsError(Exception):
    """Raised when required columns are missing from the header row."""


def _header_labels(row: Iterable[Any]) -> list[str]:
    return [cell_text(c).strip() for c in row]


def find_header_row(frame: pd.DataFrame, sentinel: str, sheet_name: str = "") -> int:
    """Index of the first row holding a cell equal (after trim) to sentinel."""
    for idx, raw in enumerate(frame.itertuples(index=False, name=None)):
        if sentinel in _header_labels(raw):
            return idx
    raise HeaderNotFoundError(f"sheet '{sheet_name}' has no header row containing '{sentinel}'")


def resolve_columns(
    header_row: Sequence[Any], required: Sequence[str], sheet_name: str = ""
) -> dict[str, int]:
    """Map each required label to its column index (first occurrence wins)."""
    labels = _header_labels(header_row)
    columns: dict[str, int] = {}
    for label in required:
        if label in labels:
            columns[label] = labels.index(label)
    missing = [label for label in required if label not in columns]
    if missing:
        raise MissingColumnsError(f"sheet '{sheet_name}' missing columns: {missing}")
    return columns


def normalize_value(value: Any) -> str:
    """Trimmed string form of a record cell.

    Blank cells and numeric zero both become "" (the renderer shows them as 0).
    """
    if is_blank(value):
        return ""
    if isinstance(value, Number) and not isinstance(value, bool) and value == 0:
        return ""
    return cell_text(value).strip()


def _data_rows(frame: pd.DataFrame, header_idx: int) -> Iterable[tuple[Any, ...]]:
    data_part = frame.iloc[header_idx + 1:]
    for _, raw in data_part.iterrows():
        # 空行 (全セル空) はスキップ
        if all(is_blank(v) for v in raw.tolist()):
            continue
        yield tuple(raw.tolist())


def read_attendance_records(frame: pd.DataFrame, sentinel: str = "Department", sheet_name: str = "Attendance") -> list[AttendanceRecord]:
    """Parse the Attendance sheet into records, in sheet order.

    Raises:
        HeaderNotFoundError: no row contains the sentinel label
        MissingColumnsError: any of the nine attendance columns is absent
    """
    if frame.shape[0] <= 1:
        return []
    header_idx = find_header_row(frame, sentinel, sheet_name)
    columns = resolve_columns(frame.iloc[header_idx].tolist(), ATTENDANCE_COLUMNS, sheet_name)

    records: list[AttendanceRecord] = []
    for raw in _data_rows(frame, header_idx):
        values = {label: normalize_value(raw[idx]) for label, idx in columns.items()}
        records.append(AttendanceRecord.from_labels(values))
    return records


def read_department_emails(frame: pd.DataFrame, sheet_name: str = "dept_emails") -> dict[str, str]:
    """Department -> raw recipient string from the mapping sheet (header on row 1).

    Rows with a blank department are ignored; a later row for the same
    department overrides an earlier one.
    """
    if frame.shape[0] <= 1:
        return {}
    columns = resolve_columns(frame.iloc[0].tolist(), EMAIL_SHEET_COLUMNS, sheet_name)
    mapping: dict[str, str] = {}
    for raw in _data_rows(frame, 0):
        department = normalize_value(raw[columns["Department"]])
        if department:
            mapping[department] = normalize_value(raw[columns["Emails"]])
    return mapping
