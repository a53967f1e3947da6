from __future__ import annotations

import math
from collections.abc import Sequence
from functools import lru_cache
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader

from audit_reports.excel.values import cell_text
from audit_reports.models.attendance_record import ATTENDANCE_COLUMNS, ATTENDANCE_FIELDS, AttendanceRecord

"""HTML rendering for the report mails.

All markup is inline-styled <table> HTML so it survives plain mail clients
(no stylesheet, no scripts). Templates live in audit_reports/templates;
cell-level styling decisions are made here so they can be tested without
parsing HTML.
"""

__all__ = [
    "audit_cell_style",
    "column_width",
    "format_kpi_percent",
    "display_value",
    "render_audit_table",
    "render_weekly_audit_body",
    "render_attendance_table",
    "render_attendance_body",
]

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

AUDIT_HEADER_STYLE = "background-color: #333; color: white; font-weight: bold; padding: 8px; text-align: left;"
AUDIT_CELL_STYLE = "padding: 8px; border: 1px solid #ccc;"
PASS_STYLE = "background-color: #D9EAD3; color: #10630D; font-weight: bold;"  # light green
FAIL_STYLE = "background-color: #F4CCCC; color: #CC0000; font-weight: bold;"  # light red
NEUTRAL_STYLE = "font-weight: bold; text-align: center"

EVEN_ROW_BACKGROUND = "#f8f9fa"
ODD_ROW_BACKGROUND = "#ffffff"

# Visible attendance columns (Department is dropped from the table)
_DISPLAY_COLUMNS: tuple[tuple[str, str], ...] = tuple(
    (label, name) for label, name in zip(ATTENDANCE_COLUMNS, ATTENDANCE_FIELDS) if name != "department"
)


@lru_cache(maxsize=1)
def _get_template_env() -> Environment:
    return Environment(
        loader=FileSystemLoader(str(TEMPLATES_DIR)),
        autoescape=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def _render(template_name: str, **context: Any) -> str:
    return _get_template_env().get_template(template_name).render(**context)


# -- weekly audit ----------------------------------------------------------

def audit_cell_style(value: Any, is_header: bool = False) -> str:
    if is_header:
        return AUDIT_HEADER_STYLE
    text = cell_text(value).strip().upper()
    if text == "PASS":
        return AUDIT_CELL_STYLE + PASS_STYLE
    if text == "FAIL":
        return AUDIT_CELL_STYLE + FAIL_STYLE
    return AUDIT_CELL_STYLE + NEUTRAL_STYLE


def render_audit_table(rows: Sequence[Sequence[Any]]) -> str:
    """Snapshot range as a table; the first row becomes the header band."""
    rendered = []
    for row_idx, row in enumerate(rows):
        is_header = row_idx == 0
        rendered.append([
            {
                "tag": "th" if is_header else "td",
                "style": audit_cell_style(value, is_header),
                "text": cell_text(value),
            }
            for value in row
        ])
    return _render("audit_table.html.j2", rows=rendered)


def render_weekly_audit_body(
    week: str,
    audit_table: str,
    references: Sequence[Any],
    criteria: Sequence[tuple[str, str]],
    sender_name: str,
) -> str:
    """Mail body: intro, snapshot table, then the TRn / FIN-n legend.

    Reference rows past the end of the criteria list carry no criterion.
    """
    legend = []
    for idx, ref in enumerate(references):
        code, text = criteria[idx] if idx < len(criteria) else ("", "")
        legend.append({
            "ref_code": f"TR{idx + 1}",
            "ref_value": cell_text(ref),
            "criterion_code": code,
            "criterion_text": text,
        })
    return _render(
        "weekly_audit_email.html.j2",
        week=week,
        audit_table=audit_table,
        legend=legend,
        sender_name=sender_name,
    )


# -- attendance ------------------------------------------------------------

def column_width(index: int) -> str | None:
    """Fixed pixel width of a visible attendance column, None = auto."""
    if index == 0:
        return "166px"
    if index == 1:
        return "133px"
    if 2 <= index <= 6:
        return "90px"
    if index == 7:
        return "100px"
    return None


def format_kpi_percent(value: Any) -> str:
    """0.95 -> '95%'; zero, blank or unparseable -> '0%'. Rounds half up."""
    try:
        number = float(str(value).strip())
    except (TypeError, ValueError):
        return "0%"
    if math.isnan(number) or math.isinf(number) or number == 0:
        return "0%"
    return f"{math.floor(number * 100 + 0.5)}%"


def display_value(field_name: str, value: str) -> str:
    if field_name == "kpi_percent":
        return format_kpi_percent(value)
    if value == "":
        return "0"
    return value


def render_attendance_table(records: Sequence[AttendanceRecord]) -> str:
    if not records:
        return ""
    headers = [
        {
            "label": label,
            "align": "left" if name == "name" else "center",
            "width": column_width(idx),
        }
        for idx, (label, name) in enumerate(_DISPLAY_COLUMNS)
    ]
    rows = []
    for idx, record in enumerate(records):
        rows.append({
            "background": EVEN_ROW_BACKGROUND if idx % 2 == 0 else ODD_ROW_BACKGROUND,
            "cells": [
                {
                    "align": "left" if name == "name" else "center",
                    "text": display_value(name, getattr(record, name)),
                }
                for _, name in _DISPLAY_COLUMNS
            ],
        })
    return _render("attendance_table.html.j2", headers=headers, rows=rows)


def render_attendance_body(
    department: str,
    from_date: str,
    to_date: str,
    attendance_table: str,
    sender_name: str,
    contact: str = "",
) -> str:
    return _render(
        "attendance_email.html.j2",
        department=department,
        from_date=from_date,
        to_date=to_date,
        attendance_table=attendance_table,
        sender_name=sender_name,
        contact=contact,
    )
