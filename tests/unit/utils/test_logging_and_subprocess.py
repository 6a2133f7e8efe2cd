from __future__ import annotations

import logging
import os
import subprocess
import sys

import pytest

from helpers.cache_utils import reset_kce_caches
from kce.core.stdlib_logging import configure_from_config, configure_stdlib_logging
from kce.core.utils.subprocess import configured_timeout, run_with_timeout


def _kce_file_handlers():
    return [
        h
        for h in logging.getLogger().handlers
        if isinstance(h, logging.FileHandler) and h.baseFilename != os.path.abspath(os.devnull)
    ]


def test_logging_disabled_by_default():
    assert configure_from_config() is False
    assert _kce_file_handlers() == []


def test_logging_enabled_writes_under_storage_root(monkeypatch, storage_root):
    monkeypatch.setenv("KCE_logging__enabled", "true")
    monkeypatch.setenv("KCE_logging__level", "debug")
    reset_kce_caches()

    assert configure_from_config() is True
    assert configure_from_config() is True
    assert len(_kce_file_handlers()) == 1

    logging.getLogger("kce.test").info("hello from test")
    _kce_file_handlers()[0].flush()
    log_path = storage_root / "logs" / "kce.log"
    assert "kce.test: hello from test" in log_path.read_text(encoding="utf-8")


def test_switching_log_path_replaces_handler(tmp_path):
    configure_stdlib_logging(log_path=tmp_path / "one.log")
    configure_stdlib_logging(log_path=tmp_path / "two.log", level="WARNING")

    handlers = _kce_file_handlers()
    assert len(handlers) == 1
    assert handlers[0].baseFilename.endswith("two.log")
    assert handlers[0].level == logging.WARNING


def test_configured_timeouts(monkeypatch):
    assert configured_timeout("external_validation") == 15.0
    assert configured_timeout("unknown") == 30.0
    monkeypatch.setenv("KCE_timeouts__default_seconds", "3")
    reset_kce_caches()
    assert configured_timeout() == 3.0


def test_run_with_timeout_captures_output():
    result = run_with_timeout(
        [sys.executable, "-c", "import sys; sys.stderr.write('oops'); sys.exit(3)"],
    )
    assert result.returncode == 3
    assert result.stderr == "oops"


def test_run_with_timeout_raises_on_timeout():
    with pytest.raises(subprocess.TimeoutExpired):
        run_with_timeout(
            [sys.executable, "-c", "import time; time.sleep(5)"],
            timeout=0.2,
        )


def test_missing_executable_raises_file_not_found():
    with pytest.raises(FileNotFoundError):
        run_with_timeout(["kce-definitely-missing-binary"])
