from __future__ import annotations

from typing import Any

from audit_reports.excel.values import cell_text
from audit_reports.models.report_results import AttendanceRunResult, FlattenResult, WeeklyAuditResult

"""SUMMARY line rendering.

One line per job, space separated key=value pairs, always starting with
'SUMMARY report=<job>'. The CLI strips the 'SUMMARY ' prefix before handing
the rest to log_summary(), which adds the label back.

Formats:
    SUMMARY report=flatten rows_read=N rows_processed=N rows_emitted=N skipped_rows=N watermark=<value|->
    SUMMARY report=weekly_audit status=<sent|dry_run|no_timestamp|unchanged|send_failed> timestamp=<value|->
    SUMMARY report=attendance departments=N sent=N failed=N skipped_no_data=N skipped_no_email=N
"""

__all__ = [
    "render_flatten_summary",
    "render_weekly_audit_summary",
    "render_attendance_summary",
]


def _token(value: Any) -> str:
    text = cell_text(value).replace(" ", "T") if value is not None else ""
    return text or "-"


def render_flatten_summary(result: FlattenResult) -> str:
    return (
        f"SUMMARY report=flatten "
        f"rows_read={result.rows_read} "
        f"rows_processed={result.rows_processed} "
        f"rows_emitted={result.rows_emitted} "
        f"skipped_rows={result.skipped_rows} "
        f"watermark={_token(result.watermark)}"
    )


def render_weekly_audit_summary(result: WeeklyAuditResult) -> str:
    return (
        f"SUMMARY report=weekly_audit "
        f"status={result.status.value} "
        f"timestamp={_token(result.timestamp)}"
    )


def render_attendance_summary(result: AttendanceRunResult) -> str:
    """Render the attendance SUMMARY line.

    Examples:
        >>> r = AttendanceRunResult(departments_processed=3, emails_sent=1, failed=1,
        ...                         skipped_no_data=0, skipped_no_email=1)
        >>> render_attendance_summary(r)
        'SUMMARY report=attendance departments=3 sent=1 failed=1 skipped_no_data=0 skipped_no_email=1'
    """
    return (
        f"SUMMARY report=attendance "
        f"departments={result.departments_processed} "
        f"sent={result.emails_sent} "
        f"failed={result.failed} "
        f"skipped_no_data={result.skipped_no_data} "
        f"skipped_no_email={result.skipped_no_email}"
    )
