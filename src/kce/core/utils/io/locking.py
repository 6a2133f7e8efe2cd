"""Advisory locks for version-store lineages.

A lock on ``<path>`` is an ``flock`` on the sidecar ``<path>.lock``. Threads
of the same process are serialized first through a per-sidecar mutex, since
``flock`` alone does not exclude two descriptors opened by one process on
every platform.
"""
from __future__ import annotations

import fcntl
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Dict, Iterator, Optional, TextIO

from .core import PathLike, ensure_directory

_mutexes: Dict[str, threading.Lock] = {}
_mutexes_guard = threading.Lock()


class LockTimeoutError(TimeoutError):
    """The lock could not be taken within the configured timeout."""


def _mutex_for(lock_path: Path) -> threading.Lock:
    key = str(lock_path.resolve())
    with _mutexes_guard:
        return _mutexes.setdefault(key, threading.Lock())


def _positive(name: str, value: float) -> float:
    if value <= 0:
        raise ValueError(f"{name} must be positive (got {value})")
    return value


@contextmanager
def acquire_file_lock(
    file_path: PathLike,
    timeout: Optional[float] = None,
    *,
    fail_open: Optional[bool] = None,
    poll_interval: Optional[float] = None,
) -> Iterator[Optional[TextIO]]:
    """Hold an exclusive lock on ``file_path`` for the ``with`` body.

    Unset arguments come from the ``file_locking`` config section. The body
    receives the open sidecar handle, or ``None`` when the wait timed out and
    ``fail_open`` is set.

    Raises:
        LockTimeoutError: On timeout when ``fail_open`` is False.
        ValueError: If ``timeout`` or ``poll_interval`` is not positive.
    """
    from kce.core.config.domains.timeouts import FileLockingConfig

    cfg = FileLockingConfig()
    timeout = _positive("timeout", cfg.timeout_seconds if timeout is None else timeout)
    poll_interval = _positive(
        "poll_interval", cfg.poll_interval_seconds if poll_interval is None else poll_interval
    )
    fail_open = cfg.fail_open if fail_open is None else fail_open

    target = Path(file_path)
    lock_path = target.with_name(target.name + ".lock")
    ensure_directory(lock_path.parent)
    deadline = time.monotonic() + timeout

    mutex = _mutex_for(lock_path)
    if not mutex.acquire(timeout=timeout):
        if not fail_open:
            raise LockTimeoutError(f"Could not acquire lock on {target} within {timeout}s")
        yield None
        return

    handle = open(lock_path, "a+")
    locked = False
    try:
        while not locked:
            try:
                fcntl.flock(handle.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)
                locked = True
            except OSError:
                if time.monotonic() >= deadline:
                    if not fail_open:
                        raise LockTimeoutError(
                            f"Could not acquire lock on {target} within {timeout}s"
                        ) from None
                    break
                time.sleep(poll_interval)
        yield handle if locked else None
    finally:
        try:
            if locked:
                fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
        finally:
            handle.close()
            mutex.release()


__all__ = ["acquire_file_lock", "LockTimeoutError"]
