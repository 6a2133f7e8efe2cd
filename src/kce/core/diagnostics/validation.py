"""Structural validation and the optional external validator.

Background validation re-serializes the live document and parses it again.
Save-time validation additionally requires a mapping root and, when enabled,
asks an external tool (``kubectl config view``) to read the file:

- tool reports success: save proceeds
- tool missing or timed out: save proceeds with a status note
- tool reports an error: save fails and the file is not written
"""
from __future__ import annotations

import logging
import os
import subprocess
import tempfile
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import List, Optional, Protocol, Sequence

import yaml

from kce.core.codec.document import serialize_document
from kce.core.config.domains.validation import ValidationConfig
from kce.core.entity import Document
from kce.core.exceptions import ValidationError
from kce.core.utils.io import write_text
from kce.core.utils.subprocess import run_with_timeout

logger = logging.getLogger(__name__)

MESSAGE_OK = "YAML validation: OK"
MESSAGE_OFF = "YAML validation: off"
MESSAGE_EXTERNAL_OK = "YAML validation: OK + kubectl check: OK"
MESSAGE_EXTERNAL_UNAVAILABLE = "YAML validation: OK (kubectl not installed)"


class ExternalStatus(str, Enum):
    OK = "ok"
    UNAVAILABLE = "unavailable"
    FAILED = "failed"


@dataclass(frozen=True)
class ExternalValidationResult:
    status: ExternalStatus
    message: str = ""


class ExternalValidator(Protocol):
    def validate(self, text: str) -> ExternalValidationResult: ...


class KubectlValidator:
    """Runs ``<command> --kubeconfig <tmp>`` against a temporary copy of the text."""

    UNAVAILABLE_MARKERS = ("No such file", "not found")

    def __init__(self, command: Optional[Sequence[str]] = None, timeout: Optional[float] = None) -> None:
        self.command: List[str] = list(command) if command else ValidationConfig().external_command
        self.timeout = timeout

    def _argv(self, path: Path) -> List[str]:
        return [*self.command, "--kubeconfig", str(path)]

    def validate(self, text: str) -> ExternalValidationResult:
        fd, raw_path = tempfile.mkstemp(prefix="kce-validate-", suffix=".yaml")
        os.close(fd)
        tmp_path = Path(raw_path)
        try:
            try:
                write_text(tmp_path, text)
            except OSError as exc:
                return ExternalValidationResult(ExternalStatus.FAILED, f"cannot create temp file: {exc}")

            try:
                result = run_with_timeout(
                    self._argv(tmp_path), timeout_type="external_validation", timeout=self.timeout
                )
            except (FileNotFoundError, PermissionError) as exc:
                logger.info("External validator not available: %s", exc)
                return ExternalValidationResult(ExternalStatus.UNAVAILABLE, str(exc))
            except subprocess.TimeoutExpired as exc:
                logger.warning("External validator timed out after %ss", exc.timeout)
                return ExternalValidationResult(ExternalStatus.UNAVAILABLE, f"timed out after {exc.timeout}s")
        finally:
            tmp_path.unlink(missing_ok=True)

        stderr = (result.stderr or "").strip() or "unknown kubectl error"
        if result.returncode == 0:
            return ExternalValidationResult(ExternalStatus.OK)
        if any(marker in stderr for marker in self.UNAVAILABLE_MARKERS):
            return ExternalValidationResult(ExternalStatus.UNAVAILABLE, stderr)
        return ExternalValidationResult(ExternalStatus.FAILED, stderr)


def default_external_validator() -> Optional[ExternalValidator]:
    """Validator configured by ``validation.external``, or None when disabled."""
    cfg = ValidationConfig()
    if not cfg.external_enabled:
        return None
    return KubectlValidator(cfg.external_command)


def validate_document(document: Document) -> str:
    """Background check: serialize, parse back, and report a status line."""
    try:
        yaml.safe_load(serialize_document(document))
    except (yaml.YAMLError, ValueError, TypeError) as exc:
        return f"YAML validation error: {exc}"
    return MESSAGE_OK


def validate_before_save(text: str, validator: Optional[ExternalValidator] = None) -> Optional[str]:
    """Validate export text before it replaces the canonical file.

    Returns:
        A status note from the external validator, or None when none ran.

    Raises:
        ValidationError: The text is not a mapping, or the external tool rejected it.
    """
    try:
        loaded = yaml.safe_load(text)
    except yaml.YAMLError as exc:
        raise ValidationError(f"YAML lint failed: {exc}") from exc
    if not isinstance(loaded, dict):
        raise ValidationError("YAML lint failed: kubeconfig root must be a mapping/object")

    if validator is None:
        return None

    result = validator.validate(text)
    if result.status is ExternalStatus.OK:
        return MESSAGE_EXTERNAL_OK
    if result.status is ExternalStatus.UNAVAILABLE:
        logger.warning("Saving without external validation: %s", result.message or "validator unavailable")
        return MESSAGE_EXTERNAL_UNAVAILABLE
    raise ValidationError(
        f"kubectl validation failed: {result.message}",
        context={"stderr": result.message},
    )


__all__ = [
    "MESSAGE_OK",
    "MESSAGE_OFF",
    "ExternalStatus",
    "ExternalValidationResult",
    "ExternalValidator",
    "KubectlValidator",
    "default_external_validator",
    "validate_document",
    "validate_before_save",
]
