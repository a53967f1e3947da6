from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from datetime import date, datetime
from zoneinfo import ZoneInfo

from audit_reports.excel.reader import read_attendance_records, read_department_emails
from audit_reports.excel.values import cell_text, format_date
from audit_reports.excel.workbook import TabularStore
from audit_reports.logging.error_log import ErrorLogBuffer
from audit_reports.mail.transport import MailTransport
from audit_reports.models.attendance_record import AttendanceRecord
from audit_reports.models.config_models import AttendanceConfig
from audit_reports.models.email_message import OutgoingEmail
from audit_reports.models.error_record import ErrorRecord
from audit_reports.models.report_results import AttendanceRunResult, DepartmentOutcome, OutcomeStatus
from audit_reports.render.csv_export import csv_attachment
from audit_reports.render.html import render_attendance_body, render_attendance_table
from audit_reports.services.progress import ProgressTracker

"""Department attendance mailer.

Flow:
1. Read the Attendance and dept_emails sheets (both must exist)
2. Parse attendance records (header row found via the sentinel label)
3. Group records by department, in first-seen order
4. For each department with rows and a recipient mapping: render the HTML
   table + CSV and send one mail

Departments without rows or without a mapping are skipped and counted. A send
failure for one department is logged and recorded, and the loop moves on.
Structural problems (missing sheet / header / columns) raise before any mail
goes out.
"""

__all__ = [
    "ReportPeriod",
    "read_report_period",
    "group_by_department",
    "department_label",
    "build_department_email",
    "run_attendance",
]

logger = logging.getLogger(__name__)

REPORT_NAME = "attendance"


@dataclass(frozen=True)
class ReportPeriod:
    week: str
    from_date: str
    to_date: str


def read_report_period(store: TabularStore, config: AttendanceConfig, tz: str) -> ReportPeriod:
    sheet = config.sheet
    return ReportPeriod(
        week=cell_text(store.get_cell(sheet, config.week_cell)),
        from_date=format_date(store.get_cell(sheet, config.from_cell), config.date_format, tz),
        to_date=format_date(store.get_cell(sheet, config.to_cell), config.date_format, tz),
    )


def group_by_department(records: Iterable[AttendanceRecord]) -> dict[str, list[AttendanceRecord]]:
    """Department -> records, keeping sheet order; blank departments are dropped."""
    groups: dict[str, list[AttendanceRecord]] = {}
    for record in records:
        if not record.department:
            continue
        groups.setdefault(record.department, []).append(record)
    return groups


def department_label(code: str, labels: Mapping[str, str]) -> str:
    """Display name for a department code; unmapped codes pass through as-is."""
    label = labels.get(code)
    if label is None:
        logger.warning(f"no display label for department '{code}', using the code")
        return code
    return label


def build_department_email(
    department: str,
    label: str,
    records: Sequence[AttendanceRecord],
    recipients: str,
    period: ReportPeriod,
    config: AttendanceConfig,
    today: date,
) -> OutgoingEmail:
    """One department's mail; the CSV file name uses the raw department code."""
    body = render_attendance_body(
        department=label,
        from_date=period.from_date,
        to_date=period.to_date,
        attendance_table=render_attendance_table(records),
        sender_name=config.sender_name,
        contact=config.contact,
    )
    attachments = ()
    if config.attach_csv:
        filename = f"Attendance_{department}_{today.strftime('%Y%m%d')}.csv"
        attachments = (csv_attachment(records, filename),)
    return OutgoingEmail(
        to=recipients,
        cc=", ".join(config.cc),
        subject=f"Attendance ({label}) {period.week}".rstrip(),
        html_body=body,
        sender_name=config.sender_name,
        attachments=attachments,
    )


def run_attendance(
    store: TabularStore,
    transport: MailTransport,
    config: AttendanceConfig,
    tz: str = "UTC",
    *,
    today: date | None = None,
    error_log: ErrorLogBuffer | None = None,
) -> AttendanceRunResult:
    """Send one attendance mail per mapped department.

    Raises:
        SheetNotFoundError: Attendance or dept_emails sheet missing
        HeaderNotFoundError: no row holds the sentinel label
        MissingColumnsError: a required column is absent
    """
    attendance_frame = store.read_sheet(config.sheet)
    email_frame = store.read_sheet(config.email_sheet)

    records = read_attendance_records(attendance_frame, config.sentinel, config.sheet)
    if not records:
        logger.warning(f"no attendance data found in sheet '{config.sheet}'")
        return AttendanceRunResult.from_outcomes([])

    groups = group_by_department(records)
    email_map = read_department_emails(email_frame, config.email_sheet)
    period = read_report_period(store, config, tz)
    if today is None:
        today = datetime.now(ZoneInfo(tz)).date()

    outcomes: list[DepartmentOutcome] = []
    with ProgressTracker(len(groups), description="Sending department reports", unit="dept") as progress:
        for department, rows in groups.items():
            progress.start_item(department)
            outcome = _process_department(
                department, rows, email_map.get(department, ""), period, config, today, transport, error_log
            )
            outcomes.append(outcome)
            progress.set_postfix(status=outcome.status.value)
            progress.finish_item()

    return AttendanceRunResult.from_outcomes(outcomes)


def _process_department(
    department: str,
    rows: list[AttendanceRecord],
    recipients: str,
    period: ReportPeriod,
    config: AttendanceConfig,
    today: date,
    transport: MailTransport,
    error_log: ErrorLogBuffer | None,
) -> DepartmentOutcome:
    if not rows:
        logger.info(f"skipped department '{department}': no attendance rows")
        return DepartmentOutcome(department=department, status=OutcomeStatus.SKIPPED_NO_DATA)

    if not recipients.strip():
        logger.info(f"skipped department '{department}': no email mapping found")
        return DepartmentOutcome(department=department, status=OutcomeStatus.SKIPPED_NO_EMAIL, rows=len(rows))

    label = department_label(department, config.department_labels)
    try:
        message = build_department_email(department, label, rows, recipients, period, config, today)
        transport.send(message)
    except Exception as e:  # 1部署の失敗で残りを止めない
        logger.error(f"failed to send email for department '{department}': {e}")
        if error_log is not None:
            error_log.append(ErrorRecord.create(REPORT_NAME, config.sheet, department, "SEND_FAILED", str(e)))
        return DepartmentOutcome(
            department=department,
            status=OutcomeStatus.FAILED,
            label=label,
            recipients=recipients,
            rows=len(rows),
            error=str(e),
        )

    logger.info(f"sent email for department '{department}' to {recipients}")
    return DepartmentOutcome(
        department=department,
        status=OutcomeStatus.SENT,
        label=label,
        recipients=recipients,
        rows=len(rows),
    )
