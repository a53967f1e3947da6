from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any
from zoneinfo import ZoneInfo

from audit_reports.excel.values import cell_text, is_blank
from audit_reports.excel.workbook import TabularStore
from audit_reports.logging.error_log import ErrorLogBuffer
from audit_reports.mail.transport import MailTransport, MailTransportError
from audit_reports.models.audit_snapshot import AuditSnapshot
from audit_reports.models.config_models import WeeklyAuditConfig
from audit_reports.models.email_message import OutgoingEmail
from audit_reports.models.error_record import ErrorRecord
from audit_reports.models.report_results import WeeklyAuditResult, WeeklyAuditStatus
from audit_reports.render.html import render_audit_table, render_weekly_audit_body
from audit_reports.state.properties import PropertyStore

"""Weekly internal audit mailer.

Reads the last_audit snapshot and mails it once per distinct timestamp. The
timestamp's canonical string is compared with the persisted last-sent marker;
the marker only moves after a successful send, so a failed send is retried
with the same timestamp on the next run.
"""

__all__ = [
    "canonical_timestamp",
    "load_snapshot",
    "build_weekly_email",
    "compose_and_maybe_send",
]

logger = logging.getLogger(__name__)

REPORT_NAME = "weekly_audit"


def canonical_timestamp(value: Any, fmt: str, tz: str) -> str | None:
    """Dedup key for the timestamp cell; None when the cell is empty.

    Date values are formatted with fmt (aware values converted to tz first),
    anything else uses its plain string form.
    """
    if is_blank(value):
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(ZoneInfo(tz))
        return value.strftime(fmt)
    if isinstance(value, date):
        return datetime(value.year, value.month, value.day).strftime(fmt)
    return str(value)


def load_snapshot(store: TabularStore, config: WeeklyAuditConfig) -> AuditSnapshot:
    """Read the snapshot range and its control cells.

    Raises:
        SheetNotFoundError: the snapshot sheet does not exist
    """
    sheet = config.sheet
    return AuditSnapshot(
        timestamp=store.get_cell(sheet, config.timestamp_cell),
        week=store.get_cell(sheet, config.week_cell),
        to=cell_text(store.get_cell(sheet, config.to_cell)).strip(),
        cc=cell_text(store.get_cell(sheet, config.cc_cell)).strip(),
        table=store.get_range(sheet, config.data_range),
        references=tuple(store.get_cell(sheet, ref) for ref in config.reference_cells),
    )


def build_weekly_email(snapshot: AuditSnapshot, config: WeeklyAuditConfig) -> OutgoingEmail:
    week = cell_text(snapshot.week)
    body = render_weekly_audit_body(
        week=week,
        audit_table=render_audit_table(snapshot.table),
        references=snapshot.references,
        criteria=config.criteria,
        sender_name=config.sender_name,
    )
    return OutgoingEmail(
        to=snapshot.to,
        cc=snapshot.cc,
        subject=f"Weekly Internal Audit for {week}",
        html_body=body,
        sender_name=config.sender_name,
    )


def compose_and_maybe_send(
    snapshot: AuditSnapshot,
    markers: PropertyStore,
    transport: MailTransport,
    config: WeeklyAuditConfig,
    tz: str = "UTC",
    *,
    dry_run: bool = False,
    error_log: ErrorLogBuffer | None = None,
) -> WeeklyAuditResult:
    """Send the weekly audit mail unless this timestamp was already sent."""
    current = canonical_timestamp(snapshot.timestamp, config.timestamp_format, tz)
    if current is None:
        logger.info("no timestamp found, email not sent")
        return WeeklyAuditResult(status=WeeklyAuditStatus.NO_TIMESTAMP)

    last_sent = markers.get(config.marker_key)
    if current == last_sent:
        logger.info(f"timestamp {current} already sent, nothing to do")
        return WeeklyAuditResult(status=WeeklyAuditStatus.UNCHANGED, timestamp=current)

    message = build_weekly_email(snapshot, config)
    try:
        transport.send(message)
    except MailTransportError as e:
        logger.error(f"error sending weekly audit email: {e}")
        if error_log is not None:
            error_log.append(ErrorRecord.create(REPORT_NAME, config.sheet, current, "SEND_FAILED", str(e)))
        return WeeklyAuditResult(status=WeeklyAuditStatus.SEND_FAILED, timestamp=current, error=str(e))

    if dry_run:
        return WeeklyAuditResult(status=WeeklyAuditStatus.DRY_RUN, timestamp=current)

    logger.info(f"weekly audit email sent to {message.to}")
    markers.set(config.marker_key, current)
    return WeeklyAuditResult(status=WeeklyAuditStatus.SENT, timestamp=current)
