from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for error logging.

Structured record for the JSON Lines error log. Fatal run errors use
item="<RUN>" since they are not tied to a single department or row.
"""

__all__ = [
    "ErrorRecord",
    "RUN_LEVEL_ITEM",
]

RUN_LEVEL_ITEM = "<RUN>"


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        report: Job name (flatten / weekly_audit / attendance)
        sheet: Sheet the job was reading when the error occurred
        item: Department code, or RUN_LEVEL_ITEM for run-level errors
        error_type: Error classification in UPPER_SNAKE_CASE format
        message: Exception text or description
    """
    timestamp: str  # ISO8601 UTC
    report: str
    sheet: str
    item: str
    error_type: str  # UPPER_SNAKE
    message: str

    @staticmethod
    def create(report: str, sheet: str, item: str, error_type: str, message: str) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            report=report,
            sheet=sheet,
            item=item,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        # 追加キー阻止: dataclass -> dict して json.dumps
        return json.dumps(asdict(self), ensure_ascii=False)
