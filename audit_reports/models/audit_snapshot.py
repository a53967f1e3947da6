from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

__all__ = [
    "AuditSnapshot",
]


@dataclass(frozen=True)
class AuditSnapshot:
    """Everything the weekly audit mail reads from the last_audit sheet."""
    timestamp: Any  # raw cell value; drives the send-once dedup
    week: Any  # week label shown in subject and intro
    to: str
    cc: str
    table: list[list[Any]]  # data range, first row = header band
    references: tuple[Any, ...] = field(default_factory=tuple)  # TR1..TRn values
