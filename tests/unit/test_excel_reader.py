from __future__ import annotations

import pandas as pd
import pytest

from audit_reports.excel.reader import (
    HeaderNotFoundError,
    MissingColumnsError,
    find_header_row,
    normalize_value,
    read_attendance_records,
    read_department_emails,
    resolve_columns,
)
from audit_reports.models.attendance_record import ATTENDANCE_COLUMNS


def _frame(rows):
    return pd.DataFrame(rows, dtype=object)


def test_find_header_row_skips_title_rows():
    frame = _frame([["Title", None], [None, None], [" Department ", "Name"]])
    assert find_header_row(frame, "Department") == 2


def test_find_header_row_missing_sentinel():
    with pytest.raises(HeaderNotFoundError, match="Attendance"):
        find_header_row(_frame([["Title"], ["Name"]]), "Department", "Attendance")


def test_resolve_columns_first_occurrence_wins():
    columns = resolve_columns(["Name", "Department", "Name"], ["Department", "Name"])
    assert columns == {"Department": 1, "Name": 0}


def test_resolve_columns_reports_all_missing():
    with pytest.raises(MissingColumnsError) as exc:
        resolve_columns(["Department"], ["Department", "Name", "Employee ID"], "Attendance")
    assert "sheet 'Attendance' missing columns: ['Name', 'Employee ID']" in str(exc.value)


@pytest.mark.parametrize(
    "raw, expected",
    [
        (None, ""),
        (float("nan"), ""),
        (0, ""),
        (0.0, ""),
        ("  Alice ", "Alice"),
        (12.0, "12"),
        (0.95, "0.95"),
        ("0", "0"),
    ],
)
def test_normalize_value(raw, expected):
    assert normalize_value(raw) == expected


def test_read_attendance_records_skips_blank_rows_and_keeps_order():
    frame = _frame([
        ["Attendance report", None, None, None, None, None, None, None, None],
        list(ATTENDANCE_COLUMNS),
        ["4.Finance", "Alice", "E-01", 5, 5, 5, 0, 0, 1],
        [None] * 9,
        ["6.M_Tech", "Bob", "E-02", 4, 4, 4, 1, None, 0.8],
    ])
    records = read_attendance_records(frame)
    assert [r.name for r in records] == ["Alice", "Bob"]
    assert records[0].hr_adj == ""
    assert records[1].kpi_percent == "0.8"
    assert records[1].as_row()["HR - Adj"] == "1"


def test_read_attendance_records_reordered_columns():
    header = list(reversed(ATTENDANCE_COLUMNS))
    frame = _frame([header, list(reversed(["4.Finance", "Alice", "E-01", 5, 5, 5, 0, 0, 1]))])
    records = read_attendance_records(frame)
    assert records[0].department == "4.Finance"
    assert records[0].kpi_percent == "1"


def test_read_attendance_records_single_row_sheet():
    assert read_attendance_records(_frame([list(ATTENDANCE_COLUMNS)])) == []


def test_read_department_emails():
    frame = _frame([
        ["Department", "Emails"],
        ["4.Finance", "fin@example.com"],
        [None, "orphan@example.com"],
        ["4.Finance", "fin2@example.com"],
    ])
    assert read_department_emails(frame) == {"4.Finance": "fin2@example.com"}


def test_read_department_emails_missing_column():
    with pytest.raises(MissingColumnsError):
        read_department_emails(_frame([["Department", "Mail"], ["4.Finance", "x@example.com"]]))
