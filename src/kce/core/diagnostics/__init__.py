"""Diagnostics: referential warnings and document validation."""
from __future__ import annotations

from .validation import (
    ExternalStatus,
    ExternalValidationResult,
    KubectlValidator,
    validate_before_save,
    validate_document,
)
from .warnings import cluster_warning, collect_warnings, context_warning, entity_warning, user_warning

__all__ = [
    "ExternalStatus",
    "ExternalValidationResult",
    "KubectlValidator",
    "validate_before_save",
    "validate_document",
    "context_warning",
    "cluster_warning",
    "user_warning",
    "entity_warning",
    "collect_warnings",
]
