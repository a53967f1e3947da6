"""Domain models for the audit / attendance reporting jobs.

This package contains the configuration tree, the attendance record shape,
outgoing mail messages and the per-job result models.
"""

from .attendance_record import ATTENDANCE_COLUMNS, AttendanceRecord
from .audit_snapshot import AuditSnapshot
from .config_models import (
    AttendanceConfig,
    FlattenConfig,
    ReportsConfig,
    SmtpConfig,
    WeeklyAuditConfig,
)
from .email_message import Attachment, OutgoingEmail
from .report_results import (
    AttendanceRunResult,
    DepartmentOutcome,
    FlattenResult,
    OutcomeStatus,
    WeeklyAuditResult,
    WeeklyAuditStatus,
)

__all__ = [
    # Configuration models
    "AttendanceConfig",
    "FlattenConfig",
    "ReportsConfig",
    "SmtpConfig",
    "WeeklyAuditConfig",
    # Records & messages
    "ATTENDANCE_COLUMNS",
    "AttendanceRecord",
    "AuditSnapshot",
    "Attachment",
    "OutgoingEmail",
    # Results
    "AttendanceRunResult",
    "DepartmentOutcome",
    "FlattenResult",
    "OutcomeStatus",
    "WeeklyAuditResult",
    "WeeklyAuditStatus",
]
