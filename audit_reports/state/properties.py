from __future__ import annotations

import json
import os
from pathlib import Path

"""Durable scalar property store.

A small JSON object on disk holding string properties (the weekly audit's
last-sent marker). Values survive across runs; each set() rewrites the file
through a temp file + os.replace so a crash never leaves half-written JSON.
No locking: a single writer is assumed.
"""

__all__ = [
    "PropertyStore",
    "PropertyStoreError",
]


class PropertyStoreError(Exception):
    pass


class PropertyStore:
    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def _read_all(self) -> dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        except json.JSONDecodeError as e:
            raise PropertyStoreError(f"invalid property file {self.path}: {e}") from e
        except OSError as e:
            raise PropertyStoreError(f"cannot read property file {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise PropertyStoreError(f"invalid property file {self.path}: object expected")
        return {str(k): str(v) for k, v in data.items()}

    def get(self, key: str) -> str | None:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2, sort_keys=True), encoding="utf-8")
            os.replace(tmp, self.path)
        except OSError as e:
            raise PropertyStoreError(f"cannot write property file {self.path}: {e}") from e
