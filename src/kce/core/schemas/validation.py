"""JSON Schema checks for the merged kce configuration.

Schemas live as YAML under ``kce/data/schemas/`` and are validated with
``jsonschema``'s Draft 2020-12 validator. Every violation is reported, not
just the first, so a broken overlay file can be fixed in one pass.
"""
from __future__ import annotations

from functools import lru_cache
from typing import Any, Dict, List

from jsonschema import Draft202012Validator

from kce.core.utils.io import read_yaml
from kce.data import get_data_path


class SchemaValidationError(ValueError):
    """The configuration does not match its schema."""

    def __init__(self, schema_name: str, errors: List[str]) -> None:
        self.schema_name = schema_name
        self.errors = errors
        super().__init__(f"Validation failed against schema '{schema_name}': " + "; ".join(errors))


@lru_cache(maxsize=16)
def load_schema(schema_name: str) -> Dict[str, Any]:
    """Load ``schemas/<schema_name>`` (``.yaml`` is appended when missing).

    Raises:
        FileNotFoundError: If no such schema is bundled.
        ValueError: If the file is not a YAML mapping.
    """
    if not schema_name.lower().endswith((".yaml", ".yml")):
        schema_name = f"{schema_name}.yaml"

    schema_path = get_data_path("schemas") / schema_name
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema not found: {schema_name} (searched {schema_path.parent})")

    schema = read_yaml(schema_path, raise_on_error=True)
    if not isinstance(schema, dict):
        raise ValueError(f"Schema must be a YAML mapping, got {type(schema).__name__}")
    return schema


def schema_errors(payload: Dict[str, Any], schema_name: str) -> List[str]:
    """``dotted.path: message`` for each violation, ordered by path."""
    validator = Draft202012Validator(load_schema(schema_name))
    errors: List[str] = []
    for error in sorted(validator.iter_errors(payload), key=lambda e: [str(p) for p in e.path]):
        where = ".".join(str(p) for p in error.path)
        errors.append(f"{where}: {error.message}" if where else error.message)
    return errors


def validate_payload(payload: Dict[str, Any], schema_name: str) -> None:
    """Raise :class:`SchemaValidationError` unless ``payload`` matches the schema."""
    errors = schema_errors(payload, schema_name)
    if errors:
        raise SchemaValidationError(schema_name, errors)


__all__ = ["SchemaValidationError", "load_schema", "schema_errors", "validate_payload"]
