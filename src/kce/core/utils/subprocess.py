"""Running external tools (the kubeconfig validator) under configured timeouts.

Commands are argument lists; nothing goes through a shell. Output is captured
with ``communicate`` on a process started in its own session, so a timeout
can kill the whole group and a grandchild holding the pipes open never hangs
the editor.
"""
from __future__ import annotations

import logging
import os
import signal
import subprocess
from time import perf_counter
from typing import Any, Dict, List, Optional, Sequence

from kce.core.config.domains.timeouts import TimeoutsConfig

logger = logging.getLogger(__name__)

_REAP_SECONDS = 0.2


def configured_timeout(timeout_type: Optional[str] = None) -> float:
    """Seconds allowed for ``timeout_type``.

    ``external_validation`` has its own setting; anything else, including
    ``None``, uses ``timeouts.default_seconds``.
    """
    cfg = TimeoutsConfig()
    if timeout_type == "external_validation":
        return cfg.external_validation_seconds
    return cfg.default_seconds


def _kill_group(proc: subprocess.Popen) -> None:
    for sig in (signal.SIGTERM, signal.SIGKILL):
        if proc.poll() is not None:
            return
        try:
            if os.name == "posix":
                os.killpg(proc.pid, sig)
            else:
                proc.kill()
        except OSError:
            proc.kill()
        try:
            proc.wait(timeout=_REAP_SECONDS)
        except subprocess.TimeoutExpired:
            continue


def run_with_timeout(
    cmd: Sequence[Any],
    timeout_type: Optional[str] = None,
    *,
    timeout: Optional[float] = None,
    text: bool = True,
    input: Optional[str] = None,
    env: Optional[Dict[str, str]] = None,
    cwd: Optional[str] = None,
) -> subprocess.CompletedProcess:
    """Run ``cmd`` and capture its output.

    ``timeout`` overrides the configured bucket named by ``timeout_type``.
    A non-zero exit is returned, not raised.

    Raises:
        subprocess.TimeoutExpired: The command outlived its timeout (it is killed first).
        FileNotFoundError: The executable does not exist.
        PermissionError: The executable cannot be run.
    """
    argv: List[str] = [str(part) for part in cmd]
    limit = float(timeout if timeout is not None else configured_timeout(timeout_type))

    started = perf_counter()
    proc = subprocess.Popen(
        argv,
        cwd=cwd,
        env=env,
        stdin=subprocess.PIPE if input is not None else None,
        stdout=subprocess.PIPE,
        stderr=subprocess.PIPE,
        text=text,
        start_new_session=os.name == "posix",
    )
    try:
        stdout, stderr = proc.communicate(input=input, timeout=limit)
    except subprocess.TimeoutExpired:
        _kill_group(proc)
        try:
            stdout, stderr = proc.communicate(timeout=_REAP_SECONDS)
        except (subprocess.TimeoutExpired, ValueError, OSError):
            stdout, stderr = None, None
        raise subprocess.TimeoutExpired(argv, limit, output=stdout, stderr=stderr) from None

    logger.debug(
        "subprocess %s exited %s in %.1fms",
        " ".join(argv),
        proc.returncode,
        (perf_counter() - started) * 1000.0,
    )
    return subprocess.CompletedProcess(argv, proc.returncode, stdout=stdout, stderr=stderr)


__all__ = ["run_with_timeout", "configured_timeout"]
