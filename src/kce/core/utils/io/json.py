"""JSON records for the version store (one pretty, key-sorted document per file)."""
from __future__ import annotations

import fcntl
import json
from pathlib import Path
from typing import Any

from .core import PathLike, atomic_write
from .locking import acquire_file_lock

_MISSING = object()


def read_json(file_path: PathLike, *, default: Any = _MISSING) -> Any:
    """Load ``file_path`` under a shared lock.

    Raises:
        FileNotFoundError: If the file is absent and no ``default`` was given.
        json.JSONDecodeError: If the content is not valid JSON.
    """
    path = Path(file_path)
    if not path.exists():
        if default is _MISSING:
            raise FileNotFoundError(f"JSON file not found: {path}")
        return default

    with open(path, "r", encoding="utf-8") as handle:
        fcntl.flock(handle.fileno(), fcntl.LOCK_SH)
        try:
            return json.load(handle)
        finally:
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


def write_json_atomic(file_path: PathLike, data: Any, *, acquire_lock: bool = False) -> None:
    """Write ``data`` with two-space indent, sorted keys and a trailing newline.

    ``acquire_lock`` takes the ``.lock`` sidecar of ``file_path``; callers that
    already hold the lineage lock leave it off.
    """
    path = Path(file_path)

    def _dump(handle) -> None:
        json.dump(data, handle, indent=2, sort_keys=True, ensure_ascii=False)
        handle.write("\n")

    atomic_write(path, _dump, lock_cm=acquire_file_lock(path) if acquire_lock else None)


__all__ = ["read_json", "write_json_atomic"]
