from __future__ import annotations

import argparse
import os
import sys
from dataclasses import replace
from pathlib import Path

from dotenv import load_dotenv

from audit_reports.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from audit_reports.excel.reader import HeaderNotFoundError, MissingColumnsError
from audit_reports.excel.workbook import StoreError, WorkbookStore
from audit_reports.logging.error_log import ErrorLogBuffer
from audit_reports.logging.init import log_summary, setup_logging
from audit_reports.mail.transport import MailTransport, RecordingTransport, SmtpTransport
from audit_reports.models.config_models import ReportsConfig, SmtpConfig
from audit_reports.models.error_record import RUN_LEVEL_ITEM, ErrorRecord
from audit_reports.models.report_results import WeeklyAuditStatus
from audit_reports.services.attendance import run_attendance
from audit_reports.services.flattener import run_flatten
from audit_reports.services.summary import (
    render_attendance_summary,
    render_flatten_summary,
    render_weekly_audit_summary,
)
from audit_reports.services.weekly_audit import compose_and_maybe_send, load_snapshot
from audit_reports.state.properties import PropertyStore, PropertyStoreError

"""CLI entrypoint.

    python -m audit_reports.cli flatten
    python -m audit_reports.cli weekly-audit [--dry-run]
    python -m audit_reports.cli attendance [--dry-run]

Exit codes:
    0  job completed
    1  fatal (config, missing sheet / header / columns, unreadable workbook)
    2  partial failure (one or more mails could not be sent)
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2

REPORTS = ("flatten", "weekly-audit", "attendance")

# Run-level failures: reported once, no partial processing
FATAL_ERRORS = (StoreError, HeaderNotFoundError, MissingColumnsError, PropertyStoreError)


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env via python-dotenv; .env values win over the process environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _resolve_smtp(cfg: SmtpConfig) -> SmtpConfig:
    """Environment (SMTP_*) first, config/reports.yml smtp section as fallback."""
    port_env = os.getenv("SMTP_PORT")
    try:
        port = int(port_env) if port_env else cfg.port
    except ValueError as e:
        raise ConfigError(f"invalid SMTP_PORT: {port_env}") from e
    return replace(
        cfg,
        host=os.getenv("SMTP_HOST", cfg.host),
        port=port,
        user=os.getenv("SMTP_USER", cfg.user),
        password=os.getenv("SMTP_PASSWORD", cfg.password),
        from_email=os.getenv("SMTP_FROM", cfg.from_email),
        force_ssl=os.getenv("SMTP_FORCE_SSL") == "1" or cfg.force_ssl,
    )


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="audit-reports", description="Audit / attendance spreadsheet reports")
    p.add_argument("report", choices=REPORTS, help="Job to run")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to reports.yml")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--dry-run", action="store_true", help="Compose mails / rows without sending or saving")
    return p.parse_args(argv)


def _run_flatten(cfg: ReportsConfig, store: WorkbookStore, dry_run: bool) -> int:
    result = run_flatten(store, cfg.flatten, cfg.timezone)
    if not dry_run:
        store.save()
    log_summary(render_flatten_summary(result)[len("SUMMARY "):])
    return EXIT_SUCCESS_ALL


def _run_weekly_audit(
    cfg: ReportsConfig, store: WorkbookStore, transport: MailTransport, error_log: ErrorLogBuffer, dry_run: bool
) -> int:
    snapshot = load_snapshot(store, cfg.weekly_audit)
    result = compose_and_maybe_send(
        snapshot,
        PropertyStore(cfg.state_file),
        transport,
        cfg.weekly_audit,
        cfg.timezone,
        dry_run=dry_run,
        error_log=error_log,
    )
    log_summary(render_weekly_audit_summary(result)[len("SUMMARY "):])
    if result.status is WeeklyAuditStatus.SEND_FAILED:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


def _run_attendance(
    cfg: ReportsConfig, store: WorkbookStore, transport: MailTransport, error_log: ErrorLogBuffer
) -> int:
    result = run_attendance(store, transport, cfg.attendance, cfg.timezone, error_log=error_log)
    log_summary(render_attendance_summary(result)[len("SUMMARY "):])
    if result.failed > 0:
        return EXIT_PARTIAL_FAILURE
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None のときのみ sys.argv を読む (テストから main([...]) で呼ぶため)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    report = args.report.replace("-", "_")
    _load_env_file(Path(".env"), override=True)

    if args.debug:
        for h in logger.handlers:
            h.setLevel("DEBUG")
        logger.setLevel("DEBUG")
        logger.debug("debug mode enabled")

    try:
        cfg = load_config(args.config)
        smtp = _resolve_smtp(cfg.smtp)
    except ConfigError as e:
        logger.error(f"config: {e}")
        # logs_dir は設定から読めないのでデフォルトの ./logs へ
        startup_log = ErrorLogBuffer()
        startup_log.append(ErrorRecord.create(report, "", RUN_LEVEL_ITEM, "CONFIG_ERROR", str(e)))
        startup_log.flush()
        return EXIT_FATAL

    error_log = ErrorLogBuffer(Path(cfg.logs_dir))
    store = WorkbookStore(cfg.workbook)
    transport: MailTransport = RecordingTransport() if args.dry_run else SmtpTransport(smtp)
    logger.info(f"report={report} workbook={cfg.workbook}{' (dry-run)' if args.dry_run else ''}")

    try:
        if args.report == "flatten":
            code = _run_flatten(cfg, store, args.dry_run)
        elif args.report == "weekly-audit":
            code = _run_weekly_audit(cfg, store, transport, error_log, args.dry_run)
        else:
            code = _run_attendance(cfg, store, transport, error_log)
    except FATAL_ERRORS as e:
        logger.error(f"{report}: {e}")
        error_log.append(ErrorRecord.create(report, "", RUN_LEVEL_ITEM, type(e).__name__, str(e)))
        code = EXIT_FATAL
    finally:
        path = error_log.flush()
        if path is not None:
            logger.info(f"error details written to {path}")

    return code


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
