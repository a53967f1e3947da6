from __future__ import annotations

import logging

from audit_reports.logging.init import (
    LOGGER_NAME,
    SUMMARY_LEVEL,
    LabeledFormatter,
    get_logger,
    log_summary,
    setup_logging,
)


def _record(level: int, msg: str) -> logging.LogRecord:
    return logging.LogRecord(LOGGER_NAME, level, __file__, 1, msg, None, None)


def test_labeled_formatter_labels():
    fmt = LabeledFormatter()
    assert fmt.format(_record(logging.INFO, "hello")) == "INFO hello"
    assert fmt.format(_record(logging.WARNING, "careful")) == "WARN careful"
    assert fmt.format(_record(logging.ERROR, "boom")) == "ERROR boom"
    assert fmt.format(_record(SUMMARY_LEVEL, "report=x")) == "SUMMARY report=x"


def test_setup_logging_is_idempotent(logging_reset):
    first = setup_logging()
    second = setup_logging()
    assert first is second
    assert len(first.handlers) == 1
    assert first.propagate is False
    assert get_logger() is first


def test_module_loggers_share_the_handler(logging_reset, capsys):
    setup_logging()
    logging.getLogger("audit_reports.services.attendance").warning("no display label")
    log_summary("report=attendance departments=0")
    out = capsys.readouterr().out.splitlines()
    assert out == ["WARN no display label", "SUMMARY report=attendance departments=0"]
