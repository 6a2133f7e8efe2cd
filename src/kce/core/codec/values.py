"""Field value encoding.

The entity model stores every field value as text. This module converts
between the generic values produced by the YAML parser and that text form:

- strings are kept as-is
- booleans become ``"true"``/``"false"``
- numbers become their decimal text
- mappings and sequences become pretty-printed JSON with sorted keys

On the way back, ``"true"``/``"false"`` and JSON objects/arrays are restored
to native values, and keys listed in ``codec.boolean_keys`` always end up as
native booleans when their value is boolean-like (``1``/``0``, ``yes``/``no``,
``on``/``off``), at any depth.
"""
from __future__ import annotations

import json
from typing import Any, FrozenSet, Optional

from kce.core.config.domains.codec import CodecConfig

_TRUE_WORDS = frozenset({"true", "1", "yes", "on"})
_FALSE_WORDS = frozenset({"false", "0", "no", "off"})


def boolean_keys() -> FrozenSet[str]:
    """Keys whose boolean-like values are serialized as YAML booleans."""
    return CodecConfig().boolean_keys


def any_to_string(value: Any) -> str:
    """Encode a parsed YAML value as field text."""
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (dict, list)):
        return json.dumps(value, indent=2, sort_keys=True, ensure_ascii=False, default=str)
    return str(value)


def coerce_to_bool(value: Any) -> Optional[bool]:
    """Interpret ``value`` as a boolean, or return None when it is not one."""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        if value == 1:
            return True
        if value == 0:
            return False
        return None
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_WORDS:
            return True
        if lowered in _FALSE_WORDS:
            return False
    return None


def normalize_kube_value_types(value: Any, key: Optional[str] = None, *, bool_keys: Optional[FrozenSet[str]] = None) -> Any:
    """Recursively coerce values stored under boolean keys to native booleans."""
    keys = bool_keys if bool_keys is not None else boolean_keys()
    if key is not None and key in keys:
        coerced = coerce_to_bool(value)
        if coerced is not None:
            return coerced

    if isinstance(value, dict):
        return {
            nested_key: normalize_kube_value_types(nested_value, str(nested_key), bool_keys=keys)
            for nested_key, nested_value in value.items()
        }
    if isinstance(value, list):
        return [normalize_kube_value_types(item, bool_keys=keys) for item in value]
    return value


def string_to_any(text: str, key: str) -> Any:
    """Decode field text back into the value written to YAML."""
    trimmed = text.strip()
    if not trimmed:
        return ""

    lowered = trimmed.lower()
    if lowered == "true":
        return True
    if lowered == "false":
        return False

    keys = boolean_keys()
    if key in keys:
        if lowered in _TRUE_WORDS:
            return True
        if lowered in _FALSE_WORDS:
            return False

    if trimmed[0] in "{[":
        try:
            parsed = json.loads(trimmed)
        except ValueError:
            parsed = None
        if isinstance(parsed, (dict, list)):
            return normalize_kube_value_types(parsed, key, bool_keys=keys)

    return text


__all__ = [
    "any_to_string",
    "string_to_any",
    "coerce_to_bool",
    "normalize_kube_value_types",
    "boolean_keys",
]
