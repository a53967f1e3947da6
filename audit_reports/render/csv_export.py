from __future__ import annotations

from collections.abc import Sequence

import pandas as pd

from audit_reports.models.attendance_record import ATTENDANCE_COLUMNS, AttendanceRecord
from audit_reports.models.email_message import Attachment

__all__ = [
    "records_to_csv",
    "csv_attachment",
]

# これらを含む値はクォートする (単独の \r も含む)
_QUOTE_TRIGGERS = (",", '"', "\n", "\r")


def _quote(value: str) -> str:
    if any(c in value for c in _QUOTE_TRIGGERS):
        return '"' + value.replace('"', '""') + '"'
    return value


def records_to_csv(records: Sequence[AttendanceRecord]) -> str:
    """CSV text of the records, Department included.

    Comma delimited, '\\n' row terminator; values holding a comma, quote, LF
    or CR are quoted with inner quotes doubled.
    """
    frame = pd.DataFrame([r.as_row() for r in records], columns=list(ATTENDANCE_COLUMNS), dtype=object)
    quoted = frame.astype(str).map(_quote)
    lines = [",".join(_quote(label) for label in frame.columns)]
    lines.extend(",".join(row) for row in quoted.itertuples(index=False, name=None))
    return "\n".join(lines) + "\n"


def csv_attachment(records: Sequence[AttendanceRecord], filename: str) -> Attachment:
    return Attachment(filename=filename, content=records_to_csv(records).encode("utf-8"), mime_type="text/csv")
