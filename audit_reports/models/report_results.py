from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

"""Result models returned by the three reporting jobs.

The CLI turns these into the SUMMARY line and the exit code; nothing here is
persisted.
"""


@dataclass(frozen=True)
class FlattenResult:
    """Outcome of one flatten pass over the source sheet.

    watermark holds the raw cell value (as read from the source row) so it can
    be written back unchanged; watermark_changed tells the caller whether a
    write is needed at all.
    """
    rows: list[list[Any]]  # 出力行 (static prefix + group)
    watermark: Any  # raw timestamp value; None = no watermark yet
    watermark_changed: bool
    rows_read: int = 0  # source data rows seen (header excluded)
    rows_processed: int = 0  # rows newer than the prior watermark
    skipped_rows: int = 0  # short rows / empty or unparseable timestamp

    @property
    def rows_emitted(self) -> int:
        return len(self.rows)


class WeeklyAuditStatus(Enum):
    """Why the weekly audit mail was (or was not) sent.

    - SENT: mail delivered and marker advanced
    - DRY_RUN: mail composed but not delivered, marker untouched
    - NO_TIMESTAMP: timestamp cell empty, nothing attempted
    - UNCHANGED: timestamp equals the last-sent marker
    - SEND_FAILED: transport raised, marker untouched
    """
    SENT = "sent"
    DRY_RUN = "dry_run"
    NO_TIMESTAMP = "no_timestamp"
    UNCHANGED = "unchanged"
    SEND_FAILED = "send_failed"


@dataclass(frozen=True)
class WeeklyAuditResult:
    status: WeeklyAuditStatus
    timestamp: str | None = None  # canonical timestamp string
    error: str | None = None

    @property
    def sent(self) -> bool:
        return self.status is WeeklyAuditStatus.SENT


class OutcomeStatus(Enum):
    SENT = "sent"
    FAILED = "failed"
    SKIPPED_NO_DATA = "skipped_no_data"
    SKIPPED_NO_EMAIL = "skipped_no_email"


@dataclass(frozen=True)
class DepartmentOutcome:
    department: str  # department code as it appears in the sheet
    status: OutcomeStatus
    label: str | None = None  # display name used in subject / body
    recipients: str | None = None
    rows: int = 0
    error: str | None = None


@dataclass(frozen=True)
class AttendanceRunResult:
    """Run-level counts for the department attendance mailer."""
    departments_processed: int
    emails_sent: int
    failed: int
    skipped_no_data: int
    skipped_no_email: int
    outcomes: tuple[DepartmentOutcome, ...] = field(default_factory=tuple)

    @classmethod
    def from_outcomes(cls, outcomes: Iterable[DepartmentOutcome]) -> AttendanceRunResult:
        items = tuple(outcomes)

        def _count(status: OutcomeStatus) -> int:
            return sum(1 for o in items if o.status is status)

        return cls(
            departments_processed=len(items),
            emails_sent=_count(OutcomeStatus.SENT),
            failed=_count(OutcomeStatus.FAILED),
            skipped_no_data=_count(OutcomeStatus.SKIPPED_NO_DATA),
            skipped_no_email=_count(OutcomeStatus.SKIPPED_NO_EMAIL),
            outcomes=items,
        )
