"""Append-only JSON-lines implementation of AuditLog."""

from __future__ import annotations

import json
from pathlib import Path

from sims.domain.exceptions import StorageError
from sims.domain.repository.audit_log import AuditLog
from sims.infrastructure.persistence.json_file import lock_for


class JsonLinesAuditLog(AuditLog):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path
        self._lock = lock_for(file_path)

    def record(self, event: dict) -> None:
        line = json.dumps(event, sort_keys=True)
        with self._lock:
            try:
                self._file_path.parent.mkdir(parents=True, exist_ok=True)
                with self._file_path.open("a", encoding="utf-8") as fh:
                    fh.write(line + "\n")
            except OSError as exc:
                raise StorageError(f"Cannot append to {self._file_path}: {exc}") from exc

    def read_all(self) -> list[dict]:
        if not self._file_path.exists():
            return []
        with self._lock:
            lines = self._file_path.read_text(encoding="utf-8").splitlines()
        return [json.loads(line) for line in lines if line.strip()]
