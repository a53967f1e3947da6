from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from audit_reports.models.error_record import ErrorRecord

"""Per-run error log for the report jobs.

The jobs append an ErrorRecord for every failure they ride past (a department
mail that could not be sent, the weekly mail failing) and the CLI adds one
`<RUN>` record when a run stops on a fatal error. Nothing touches disk while
the job runs: the CLI flushes the buffer once, on the way out, to
`<logs_dir>/errors-YYYYMMDD-HHMMSS.log` (UTC) as JSON Lines with a fixed key
set. A clean run writes no file.
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """In-memory buffer for error records. Flush writes JSON Lines.

    Single-threaded use only.
    """
    def __init__(self, logs_dir: Path | None = None) -> None:
        self._records: list[ErrorRecord] = []
        self._logs_dir = logs_dir if logs_dir is not None else LOGS_DIR
        self._file_path: Path | None = None

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self._logs_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"errors-{stamp}.log"
        return self._file_path

    @property
    def records(self) -> list[ErrorRecord]:
        return list(self._records)

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def flush(self) -> Path | None:
        """Append buffered records to the run's log file.

        Returns the file path, or None when nothing has been written this run.
        """
        if not self._records:
            return self._file_path
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
