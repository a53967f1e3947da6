from __future__ import annotations

from dataclasses import astuple, dataclass

"""AttendanceRecord model.

One row of the Attendance sheet after header resolution. Values are
normalised to trimmed strings at ingestion so render steps never look columns
up by header text again.
"""

__all__ = [
    "ATTENDANCE_COLUMNS",
    "ATTENDANCE_FIELDS",
    "AttendanceRecord",
]

# Sheet header label -> dataclass field, in record (and CSV) order
_COLUMN_FIELDS: tuple[tuple[str, str], ...] = (
    ("Department", "department"),
    ("Name", "name"),
    ("Employee ID", "employee_id"),
    ("AM Face Scan", "am_face_scan"),
    ("PM Face Scan", "pm_face_scan"),
    ("Attendance", "attendance"),
    ("HR - Adj", "hr_adj"),
    ("KPI Leave", "kpi_leave"),
    ("KPI (%)", "kpi_percent"),
)

ATTENDANCE_COLUMNS: tuple[str, ...] = tuple(label for label, _ in _COLUMN_FIELDS)
ATTENDANCE_FIELDS: tuple[str, ...] = tuple(name for _, name in _COLUMN_FIELDS)


@dataclass(frozen=True)
class AttendanceRecord:
    department: str
    name: str
    employee_id: str
    am_face_scan: str
    pm_face_scan: str
    attendance: str
    hr_adj: str
    kpi_leave: str
    kpi_percent: str

    @classmethod
    def from_labels(cls, values: dict[str, str]) -> AttendanceRecord:
        """Build from a {header label: value} mapping; absent labels become ""."""
        return cls(**{name: values.get(label, "") for label, name in _COLUMN_FIELDS})

    def values(self) -> tuple[str, ...]:
        return astuple(self)

    def as_row(self) -> dict[str, str]:
        """Header label -> value, in sheet column order."""
        return dict(zip(ATTENDANCE_COLUMNS, self.values()))
