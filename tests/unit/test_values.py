from __future__ import annotations

from datetime import date, datetime, timezone

import pandas as pd

from audit_reports.excel.values import cell_text, format_date, is_blank, to_instant


def test_is_blank():
    assert is_blank(None)
    assert is_blank("")
    assert is_blank(float("nan"))
    assert is_blank(pd.NaT)
    assert not is_blank(" ")
    assert not is_blank(0)
    assert not is_blank(False)


def test_cell_text():
    assert cell_text(None) == ""
    assert cell_text(12.0) == "12"
    assert cell_text(12.5) == "12.5"
    assert cell_text(True) == "TRUE"
    assert cell_text(datetime(2025, 10, 6)) == "2025-10-06"
    assert cell_text(datetime(2025, 10, 6, 9, 15)) == "2025-10-06 09:15:00"
    assert cell_text(date(2025, 10, 6)) == "2025-10-06"


def test_to_instant_localizes_naive_values():
    ts = to_instant(datetime(2025, 1, 1, 9), "Asia/Yangon")
    assert ts is not None
    assert ts.tzinfo is not None
    assert ts == pd.Timestamp("2025-01-01 02:30:00", tz="UTC")


def test_to_instant_parses_strings_and_converts_aware():
    assert to_instant("2025-01-01 09:00:00", "UTC") == pd.Timestamp("2025-01-01 09:00", tz="UTC")
    aware = datetime(2025, 1, 1, 9, tzinfo=timezone.utc)
    assert to_instant(aware, "Asia/Yangon") == pd.Timestamp("2025-01-01 09:00", tz="UTC")


def test_to_instant_rejects_blanks_numbers_and_garbage():
    assert to_instant(None, "UTC") is None
    assert to_instant("", "UTC") is None
    assert to_instant(45000, "UTC") is None
    assert to_instant("not a date", "UTC") is None


def test_format_date():
    assert format_date(datetime(2025, 9, 29), "%d-%b-%Y", "UTC") == "29-Sep-2025"
    assert format_date("Week 40", "%d-%b-%Y", "UTC") == "Week 40"
    assert format_date(None, "%d-%b-%Y", "UTC") == ""


def test_to_instant_handles_dst_transitions():
    # 2024-11-03 01:30 は New York で 2 回現れる, 2024-03-10 02:30 は存在しない
    repeated = to_instant(datetime(2024, 11, 3, 1, 30), "America/New_York")
    assert repeated == pd.Timestamp("2024-11-03 06:30:00", tz="UTC")
    skipped = to_instant(datetime(2024, 3, 10, 2, 30), "America/New_York")
    assert skipped == pd.Timestamp("2024-03-10 07:00:00", tz="UTC")
    assert format_date(datetime(2024, 3, 10, 2, 30), "%H:%M", "America/New_York") == "03:00"
