"""JSON Schema helpers (schemas are stored as YAML under ``kce.data/schemas``)."""
from __future__ import annotations

from .validation import SchemaValidationError, load_schema, schema_errors, validate_payload

__all__ = ["SchemaValidationError", "load_schema", "schema_errors", "validate_payload"]
