from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any

import pandas as pd

from audit_reports.excel.values import is_blank, to_instant
from audit_reports.excel.workbook import TabularStore
from audit_reports.models.config_models import FlattenConfig
from audit_reports.models.report_results import FlattenResult

"""Row flattener for the weekly audit form responses.

Each source row is [timestamp, email, request, week start] followed by
group_count repeated groups of group_size audit cells. Every group with at
least one filled cell becomes one target row: static prefix + group.

Incremental: the target sheet keeps the last processed timestamp in its
watermark cell. Only rows strictly newer than the watermark are emitted, so a
re-run with no new responses appends nothing.

Malformed rows (too short, empty or unparseable timestamp) are dropped
silently. This is the intended best-effort policy, not an error path.
"""

__all__ = [
    "flatten_rows",
    "run_flatten",
]

logger = logging.getLogger(__name__)


def _group_is_empty(cells: Sequence[Any]) -> bool:
    return all(is_blank(c) for c in cells)


def flatten_rows(
    rows: Iterable[Sequence[Any]],
    prior_watermark: Any,
    layout: FlattenConfig,
    tz: str = "UTC",
) -> FlattenResult:
    """Flatten source data rows (header already removed).

    Args:
        rows: source data rows in sheet order
        prior_watermark: raw watermark cell value; blank means no lower bound
        layout: column layout (static prefix / group size / group count)
        tz: timezone for naive timestamp values

    Returns:
        FlattenResult with the emitted rows and the (possibly unchanged)
        watermark. The watermark becomes the newest timestamp among the rows
        processed in this call.
    """
    lower_bound = to_instant(prior_watermark, tz)
    best_instant = lower_bound
    watermark = None if is_blank(prior_watermark) else prior_watermark

    emitted: list[list[Any]] = []
    rows_read = 0
    rows_processed = 0
    skipped = 0

    for row in rows:
        rows_read += 1
        if len(row) < layout.expected_columns:
            skipped += 1
            continue

        timestamp_value = row[0]
        instant = to_instant(timestamp_value, tz)
        if instant is None:
            skipped += 1
            continue
        # 処理済み (watermark 以下) はスキップ
        if lower_bound is not None and instant <= lower_bound:
            continue

        rows_processed += 1
        static = list(row[: layout.static_columns])
        for group in range(layout.group_count):
            start = layout.static_columns + group * layout.group_size
            cells = list(row[start: start + layout.group_size])
            if _group_is_empty(cells):
                continue
            emitted.append(static + cells)

        if best_instant is None or instant > best_instant:
            best_instant = instant
            watermark = timestamp_value

    return FlattenResult(
        rows=emitted,
        watermark=watermark,
        watermark_changed=best_instant is not None and best_instant != lower_bound,
        rows_read=rows_read,
        rows_processed=rows_processed,
        skipped_rows=skipped,
    )


def _frame_rows(frame: pd.DataFrame) -> list[list[Any]]:
    # NaN -> None so downstream writes leave blank cells blank
    return [[None if is_blank(v) else v for v in row] for row in frame.itertuples(index=False, name=None)]


def run_flatten(store: TabularStore, config: FlattenConfig, tz: str = "UTC") -> FlattenResult:
    """Flatten new source rows into the target sheet and advance the watermark.

    Raises:
        SheetNotFoundError: the source sheet does not exist
    """
    source = store.read_sheet(config.source_sheet)
    store.ensure_sheet(config.target_sheet)
    prior_watermark = store.get_cell(config.target_sheet, config.watermark_cell)

    if source.shape[0] <= 1:
        logger.info(f"sheet '{config.source_sheet}' has no data rows")
        return FlattenResult(rows=[], watermark=prior_watermark, watermark_changed=False)

    if len(config.headers) != config.static_columns + config.group_size:
        logger.warning(
            f"target header has {len(config.headers)} labels, emitted rows have "
            f"{config.static_columns + config.group_size} values"
        )

    result = flatten_rows(_frame_rows(source.iloc[1:]), prior_watermark, config, tz)

    if store.last_row(config.target_sheet) == 0:
        store.set_range(config.target_sheet, 1, 1, [list(config.headers)])

    if result.rows:
        store.append_rows(config.target_sheet, result.rows)
        logger.info(f"appended {result.rows_emitted} rows to '{config.target_sheet}'")

    if result.watermark_changed:
        store.set_cell(config.target_sheet, config.watermark_cell, result.watermark)
        logger.info(f"watermark {config.target_sheet}!{config.watermark_cell} -> {result.watermark}")
    return result
