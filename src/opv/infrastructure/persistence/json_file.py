"""A JSON array file shared by several processes.

Writers hold ``<file>.lock`` for the whole read-modify-write and replace
the file through ``<file>.tmp``, so readers without the lock always see a
complete document.
"""

from __future__ import annotations

import json
import os
from pathlib import Path

from filelock import FileLock


class JsonArrayFile:

    def __init__(self, path: Path) -> None:
        self.path = path
        path.parent.mkdir(parents=True, exist_ok=True)
        self._lock = FileLock(f"{path}.lock")
        with self._lock:
            if not path.exists():
                self.write([])

    def locked(self) -> FileLock:
        """Cross-process lock to hold around a read-modify-write."""
        return self._lock

    def read(self) -> list[dict]:
        return json.loads(self.path.read_text(encoding="utf-8"))

    def write(self, records: list[dict]) -> None:
        """Replace the file contents; call with ``locked()`` held."""
        tmp_path = self.path.with_name(f"{self.path.name}.tmp")
        tmp_path.write_text(
            json.dumps(records, indent=2, ensure_ascii=False) + "\n", encoding="utf-8"
        )
        os.replace(tmp_path, self.path)
