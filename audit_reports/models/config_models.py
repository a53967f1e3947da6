from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

"""Config dataclasses for the audit / attendance reporting jobs.

Every sheet name and cell address the jobs touch lives here, so the services
never reference module-level constants for addressing. The loader in
audit_reports/config/loader.py builds these from YAML; anything the YAML omits
falls back to the defaults below (the layout of the production workbook).
"""

DEFAULT_FLATTEN_HEADERS: tuple[str, ...] = (
    "Timestamp",
    "Email Address",
    "Choose Request",
    "Date - Monday",
    "T Ref No.",
    "FIN-1 HOD signature Amend Amount & Description",
    "FIN-2 Checked by, Approved by, Prepared by",
    "FIN-3 Xero System bills",
    "FIN-4 Budget, Approval Request",
    "FIN-5 Debit Voucher, Business Unit (To tick)",
    "FIN-6 Bank Balance - Daily Update",
    "FIN-7 Cash Balance",
    "FIN-8 Daily Entry update in System",
    "FIN-9 Bank A/C, Bank Information for payment (Correct)",
    "FIN-10 Avoid of duplicating transfer (Accounting Bill only)",
    "FIN-11 Daily update Xero",
    "FIN-12 Description Accuracy",
    "FIN-13 Completion of Source Document",
    "FIN-14 Advance Form Compliance",
    "FIN-15 Accuracy of Amount",
    "T Remark",
)

DEFAULT_AUDIT_CRITERIA: tuple[tuple[str, str], ...] = (
    ("FIN-1", "HOD signature Amend Amount & Description"),
    ("FIN-2", "Checked by, Approved by, Prepared by"),
    ("FIN-3", "Xero System bills"),
    ("FIN-4", "Budget, Approval Request"),
    ("FIN-5", "Debit Voucher, Business Unit (To tick)"),
    ("FIN-6", "Bank Balance - Daily Update"),
    ("FIN-7", "Cash Balance"),
    ("FIN-8", "Daily Entry update in System"),
    ("FIN-9", "Bank A/C, Bank Information for payment (Correct)"),
    ("FIN-10", "Avoid of duplicating transfer (Accounting Bill only)"),
    ("FIN-11", "Daily update Xero"),
    ("FIN-12", "Description Accuracy"),
    ("FIN-13", "Completion of Source Document"),
    ("FIN-14", "Advance Form Compliance"),
    ("FIN-15", "Accuracy of Amount"),
)

# B2 .. U2
DEFAULT_REFERENCE_CELLS: tuple[str, ...] = tuple(f"{chr(c)}2" for c in range(ord("B"), ord("U") + 1))

DEFAULT_DEPARTMENT_LABELS: dict[str, str] = {
    "1.Admin & HR": "Admin and HR",
    "13.Shwe_Zay": "Shwe Zay",
    "3. M_BI": "M BI",
    "4.Finance": "Finance",
    "6.M_Tech": "M Tech",
    "7.Marathon_Express": "Marathon Express",
    "8.M_Kitchen": "M Kitchen",
    "9.M_Oil": "M Oil",
}


@dataclass(frozen=True)
class FlattenConfig:
    """Layout of the wide form-response sheet and the flattened target sheet."""
    source_sheet: str = "source_02"
    target_sheet: str = "flattern_audit"
    watermark_cell: str = "Z1"  # last processed timestamp, kept on the target sheet
    static_columns: int = 4  # Timestamp, Email, Request, Date-Monday
    group_size: int = 17  # T Ref No. + FIN-1..FIN-15 + T Remark
    group_count: int = 20
    headers: tuple[str, ...] = DEFAULT_FLATTEN_HEADERS

    @property
    def expected_columns(self) -> int:
        """Minimum cell count of a source row; shorter rows are skipped."""
        return self.static_columns + self.group_size * self.group_count


@dataclass(frozen=True)
class WeeklyAuditConfig:
    sheet: str = "last_audit"
    data_range: str = "A3:U19"
    timestamp_cell: str = "A1"
    week_cell: str = "C1"
    to_cell: str = "B20"
    cc_cell: str = "B21"
    reference_cells: tuple[str, ...] = DEFAULT_REFERENCE_CELLS
    criteria: tuple[tuple[str, str], ...] = DEFAULT_AUDIT_CRITERIA
    marker_key: str = "lastSentTicketTimestamp"
    timestamp_format: str = "%m-%d-%Y %H:%M:%S"
    sender_name: str = "Marathon BI"


@dataclass(frozen=True)
class AttendanceConfig:
    sheet: str = "Attendance"
    email_sheet: str = "dept_emails"
    sentinel: str = "Department"  # header row = first row holding this label
    week_cell: str = "E2"
    from_cell: str = "F2"
    to_cell: str = "G2"
    cc: tuple[str, ...] = ()
    # read-only view (frozen only guards attribute assignment)
    department_labels: Mapping[str, str] = field(
        default_factory=lambda: MappingProxyType(dict(DEFAULT_DEPARTMENT_LABELS))
    )
    attach_csv: bool = True
    date_format: str = "%d-%b-%Y"
    contact: str = ""  # shown in the body as the discrepancy contact when set
    sender_name: str = "Marathon BI"


@dataclass(frozen=True)
class SmtpConfig:
    """SMTP fallback settings. Environment variables (SMTP_*) take precedence."""
    host: str | None = None
    port: int = 587
    user: str | None = None
    password: str | None = None
    from_email: str | None = None
    force_ssl: bool = False
    timeout: int = 20


@dataclass(frozen=True)
class ReportsConfig:
    """Root configuration object shared by all three jobs."""
    workbook: str  # .xlsx path of the reporting workbook
    timezone: str = "Asia/Yangon"
    state_file: str = "state/properties.json"  # durable last-sent markers
    logs_dir: str = "logs"
    flatten: FlattenConfig = field(default_factory=FlattenConfig)
    weekly_audit: WeeklyAuditConfig = field(default_factory=WeeklyAuditConfig)
    attendance: AttendanceConfig = field(default_factory=AttendanceConfig)
    smtp: SmtpConfig = field(default_factory=SmtpConfig)
