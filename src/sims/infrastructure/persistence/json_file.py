"""Shared file helpers for the JSON repositories.

Each data file has a sidecar ``<file>.lock``.  Holding ``lock_for(path)``
takes an exclusive ``fcntl.flock`` on it, so a read-modify-write on the
file is atomic across threads *and* across ``sims`` processes.  The lock
is re-entrant within a thread.
"""

from __future__ import annotations

import contextlib
import fcntl
import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, IO

from sims.domain.exceptions import StorageError

_registry_guard = threading.Lock()
_file_locks: dict[Path, FileLock] = {}


class FileLock:

    def __init__(self, path: Path) -> None:
        self._lock_path = path.with_name(path.name + ".lock")
        self._thread_lock = threading.RLock()
        self._depth = 0
        self._handle: IO[str] | None = None

    def __enter__(self) -> FileLock:
        self._thread_lock.acquire()
        if self._depth == 0:
            try:
                self._lock_path.parent.mkdir(parents=True, exist_ok=True)
                handle = self._lock_path.open("a", encoding="utf-8")
                try:
                    fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
                except OSError:
                    handle.close()
                    raise
            except OSError as exc:
                self._thread_lock.release()
                raise StorageError(f"Cannot lock {self._lock_path}: {exc}") from exc
            self._handle = handle
        self._depth += 1
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._depth -= 1
        try:
            if self._depth == 0 and self._handle is not None:
                handle, self._handle = self._handle, None
                try:
                    fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
                finally:
                    handle.close()
        finally:
            self._thread_lock.release()


def lock_for(path: Path) -> FileLock:
    key = path.resolve()
    with _registry_guard:
        lock = _file_locks.get(key)
        if lock is None:
            lock = _file_locks[key] = FileLock(key)
        return lock


def ensure_file(path: Path, empty: str) -> None:
    with lock_for(path):
        try:
            if not path.exists():
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(empty, encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"Cannot create {path}: {exc}") from exc


def load_json(path: Path) -> Any:
    with lock_for(path):
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except OSError as exc:
            raise StorageError(f"Cannot read {path}: {exc}") from exc
        except json.JSONDecodeError as exc:
            raise StorageError(f"Corrupt data file {path}: {exc}") from exc


def dump_json(path: Path, data: Any) -> None:
    """Write through a unique temp file + rename so readers never see a half-written file."""
    with lock_for(path):
        tmp_path: Path | None = None
        try:
            fd, tmp_name = tempfile.mkstemp(
                dir=str(path.parent), prefix=f".{path.name}.", suffix=".tmp"
            )
            tmp_path = Path(tmp_name)
            with os.fdopen(fd, "w", encoding="utf-8") as tmp:
                json.dump(data, tmp, indent=2)
                tmp.write("\n")
                tmp.flush()
                os.fsync(tmp.fileno())
            os.replace(tmp_path, path)
        except OSError as exc:
            raise StorageError(f"Cannot write {path}: {exc}") from exc
        finally:
            if tmp_path is not None and tmp_path.exists():
                with contextlib.suppress(FileNotFoundError):
                    tmp_path.unlink()
