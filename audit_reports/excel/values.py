from __future__ import annotations

from datetime import date, datetime, time
from typing import Any
from zoneinfo import ZoneInfo

import pandas as pd

"""Cell value helpers shared by the readers and the renderers.

Workbook cells come back as None / str / int / float / bool / datetime / time.
pandas frames may also carry NaN / NaT for the same blanks, so blank checks go
through pd.isna.
"""

__all__ = [
    "is_blank",
    "cell_text",
    "to_instant",
    "format_date",
]


def is_blank(value: Any) -> bool:
    """True for None, NaN/NaT and the empty string (whitespace is not blank)."""
    if value is None:
        return True
    if isinstance(value, str):
        return value == ""
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def cell_text(value: Any) -> str:
    """Render a cell value as display text.

    Integral floats drop the trailing '.0' (sheet numbers are floats), dates
    render ISO, datetimes include the time only when it is not midnight.
    """
    if is_blank(value):
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, datetime):
        if value.time() == time(0, 0):
            return value.strftime("%Y-%m-%d")
        return value.strftime("%Y-%m-%d %H:%M:%S")
    if isinstance(value, date):
        return value.isoformat()
    return str(value)


def to_instant(value: Any, tz: str) -> pd.Timestamp | None:
    """Parse a timestamp cell to a tz-aware instant.

    Naive values are taken to be in the workbook's timezone. Wall times that
    fall in a DST gap shift forward to the first valid instant; repeated wall
    times resolve to the later (standard time) reading. Returns None for blanks
    and anything that does not parse as a date (numbers included).
    """
    if is_blank(value) or isinstance(value, (bool, int, float)):
        return None
    try:
        ts = pd.Timestamp(value)
    except (ValueError, TypeError, OverflowError):
        return None
    if pd.isna(ts):
        return None
    if ts.tzinfo is None:
        try:
            return ts.tz_localize(ZoneInfo(tz), ambiguous=False, nonexistent="shift_forward")
        except ValueError:
            return None
    return ts.tz_convert(ZoneInfo(tz))


def format_date(value: Any, fmt: str, tz: str) -> str:
    """Format a date cell with fmt; unparseable values fall back to cell_text."""
    ts = to_instant(value, tz)
    if ts is None:
        return cell_text(value)
    return ts.strftime(fmt)
