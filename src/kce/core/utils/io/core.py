"""Crash-safe text file primitives.

The canonical kubeconfig, workspace sidecars, drafts, version objects and
``HEAD`` pointers are all written through :func:`atomic_write`: content goes
to a hidden temp file beside the target, is fsync'd, and then replaces the
target in one ``os.replace``. Readers therefore see either the old or the new
file, never a torn one.
"""
from __future__ import annotations

import fcntl
import os
import tempfile
from contextlib import nullcontext
from pathlib import Path
from typing import Any, Callable, ContextManager, Optional, TextIO, Union

PathLike = Union[str, Path]


def ensure_directory(path: PathLike) -> Path:
    """Create ``path`` (and parents) if needed and return it.

    Raises:
        NotADirectoryError: If ``path`` exists as something other than a directory.
    """
    directory = Path(path)
    if directory.exists() and not directory.is_dir():
        raise NotADirectoryError(f"Path exists but is not a directory: {directory}")
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def atomic_write(
    path: PathLike,
    write_fn: Callable[[TextIO], None],
    *,
    lock_cm: Optional[ContextManager[Any]] = None,
    encoding: str = "utf-8",
) -> None:
    """Replace ``path`` with whatever ``write_fn`` writes, atomically.

    ``lock_cm`` wraps the whole write-and-rename when the caller needs an
    advisory lock around it. If ``write_fn`` raises, the target keeps its
    previous content and the temp file is removed.
    """
    target = Path(path)
    ensure_directory(target.parent)

    tmp_path: Optional[Path] = None
    try:
        with lock_cm or nullcontext():
            with tempfile.NamedTemporaryFile(
                "w",
                encoding=encoding,
                dir=str(target.parent),
                prefix=f".{target.name}.",
                suffix=".tmp",
                delete=False,
            ) as handle:
                tmp_path = Path(handle.name)
                fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
                write_fn(handle)
                handle.flush()
                os.fsync(handle.fileno())
                fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
            os.replace(tmp_path, target)
    finally:
        if tmp_path is not None and tmp_path.exists():
            try:
                tmp_path.unlink()
            except OSError:
                pass


def read_text(path: PathLike) -> str:
    """Return the UTF-8 content of ``path``; missing files raise ``FileNotFoundError``."""
    source = Path(path)
    if not source.is_file():
        raise FileNotFoundError(f"Text file not found: {source}")
    return source.read_text(encoding="utf-8")


def write_text(path: PathLike, content: str) -> None:
    atomic_write(path, lambda handle: handle.write(content))


def append_text(path: PathLike, content: str) -> None:
    """Append ``content`` under an exclusive ``flock`` (change logs)."""
    target = Path(path)
    ensure_directory(target.parent)
    with open(target, "a", encoding="utf-8") as handle:
        fcntl.flock(handle.fileno(), fcntl.LOCK_EX)
        try:
            handle.write(content)
            handle.flush()
        finally:
            fcntl.flock(handle.fileno(), fcntl.LOCK_UN)


__all__ = [
    "PathLike",
    "ensure_directory",
    "atomic_write",
    "read_text",
    "write_text",
    "append_text",
]
