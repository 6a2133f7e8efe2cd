"""Optional application log file for kce, configured from the ``logging`` section."""
from __future__ import annotations

import logging
import sys
from pathlib import Path

from kce.core.utils.io import ensure_directory

_CONFIGURED_LOG_PATH: str | None = None
_KCE_FILE_HANDLER: logging.Handler | None = None


def _level_from_name(name: str) -> int:
    level = getattr(logging, str(name).upper(), None)
    return level if isinstance(level, int) else logging.INFO


def configure_stdlib_logging(*, log_path: Path, level: str = "INFO") -> None:
    """Configure Python stdlib logging to write to `log_path` (no stderr handler).

    Idempotent per-process: if already configured for the same file, no-op.
    """
    global _CONFIGURED_LOG_PATH, _KCE_FILE_HANDLER

    resolved = str(Path(log_path).resolve())
    if _CONFIGURED_LOG_PATH == resolved and _KCE_FILE_HANDLER is not None:
        return

    ensure_directory(Path(resolved).parent)

    root = logging.getLogger()
    root.setLevel(_level_from_name(level))

    # FileHandler is also a StreamHandler; only stdout/stderr handlers are removed.
    for h in list(root.handlers):
        if isinstance(h, logging.StreamHandler) and getattr(h, "stream", None) in (sys.stdout, sys.stderr):
            root.removeHandler(h)
            h.close()

    if _KCE_FILE_HANDLER is not None:
        root.removeHandler(_KCE_FILE_HANDLER)
        _KCE_FILE_HANDLER.close()
        _KCE_FILE_HANDLER = None

    fh = logging.FileHandler(resolved, encoding="utf-8")
    fh.setLevel(_level_from_name(level))
    fh.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s"))
    root.addHandler(fh)

    _KCE_FILE_HANDLER = fh
    _CONFIGURED_LOG_PATH = resolved


def configure_from_config() -> bool:
    """Install the file handler when ``logging.enabled`` is true.

    Returns:
        True when a handler is installed (or already was).
    """
    from kce.core.config.domains.logging import LoggingConfig

    cfg = LoggingConfig()
    if not cfg.enabled:
        return False
    configure_stdlib_logging(log_path=cfg.log_path, level=cfg.level)
    return True


def reset_stdlib_logging_for_tests() -> None:
    """Test-only: remove the kce file handler."""
    global _CONFIGURED_LOG_PATH, _KCE_FILE_HANDLER
    if _KCE_FILE_HANDLER is not None:
        logging.getLogger().removeHandler(_KCE_FILE_HANDLER)
        _KCE_FILE_HANDLER.close()
    _CONFIGURED_LOG_PATH = None
    _KCE_FILE_HANDLER = None


__all__ = ["configure_stdlib_logging", "configure_from_config", "reset_stdlib_logging_for_tests"]
