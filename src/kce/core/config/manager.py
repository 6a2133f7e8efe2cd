"""
kce configuration management (layered YAML + environment overrides).
"""
from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple, Union

from kce.core.config.cache import ENV_PREFIX, get_cached_config
from kce.core.utils.merge import overlay_yaml_directory
from kce.data import get_data_path
from kce.data import read_yaml as read_bundled_yaml

logger = logging.getLogger(__name__)

CONFIG_SCHEMA = "config/config.schema.yaml"


def resolve_user_config_dir() -> Path:
    """Return the user overlay root (``paths.user_config_dir``).

    The overlay root must be known before overlays are read, so it is resolved
    from the ``KCE_paths__user_config_dir`` env var or the bundled default only.
    """
    raw = os.environ.get(f"{ENV_PREFIX}paths__user_config_dir")
    if not raw:
        bundled = read_bundled_yaml("config", "paths.yaml") or {}
        raw = (bundled.get("paths") or {}).get("user_config_dir") or "~/.config/kce"
    return Path(str(raw).strip()).expanduser()


class ConfigManager:
    """Load, merge, and validate kce configuration.

    Configuration sources (highest to lowest priority):
    1. Environment variables: KCE_<section>__<key>
    2. User config: <user-config-dir>/config/*.yaml (alphabetical order)
    3. Bundled defaults: kce.data/config/*.yaml (alphabetical order)
    """

    ARRAY_APPEND_MARKER = object()

    def __init__(self, user_config_dir: Optional[Path] = None) -> None:
        user_root_dir = Path(user_config_dir) if user_config_dir else resolve_user_config_dir()

        # Bundled defaults from kce.data package (always available)
        self.core_config_dir = get_data_path("config")
        # User-specific config overlays (e.g. ~/.config/kce/config)
        self.user_config_dir = user_root_dir / "config"
        self.schemas_dir = get_data_path("schemas")

    def validate_schema(self, config: Dict[str, Any], schema_name: str = CONFIG_SCHEMA) -> None:
        from kce.core.schemas.validation import validate_payload

        validate_payload(config, schema_name)

    # ========== Environment overrides ==========

    def _as_bool(self, v: str) -> Optional[bool]:
        low = v.strip().lower()
        if low in {"true", "false"}:
            return low == "true"
        return None

    def _as_int(self, v: str) -> Optional[int]:
        if re.fullmatch(r"[-+]?\d+", v.strip() or " "):
            return int(v)
        return None

    def _as_float(self, v: str) -> Optional[float]:
        s = v.strip()
        if re.fullmatch(r"[-+]?\d*\.\d+", s) or re.fullmatch(r"[-+]?\d+\.\d*", s):
            return float(s)
        return None

    def _as_json(self, v: str) -> Optional[Any]:
        s = v.strip()
        if (s.startswith("{") and s.endswith("}")) or (s.startswith("[") and s.endswith("]")):
            try:
                return json.loads(s)
            except json.JSONDecodeError:
                return None
        return None

    def _coerce_type(self, value: str) -> Any:
        for caster in (self._as_bool, self._as_int, self._as_float, self._as_json):
            result = caster(value)
            if result is not None:
                return result
        return value.strip()

    def _parse_env_key(self, raw: str, *, strict: bool) -> List[Union[str, int, object]]:
        if not raw:
            return []
        segs = raw.split("__")
        processed: List[Union[str, int, object]] = []
        for seg in segs:
            if seg == "":
                if strict:
                    raise ValueError(f"Malformed {ENV_PREFIX}* key: empty segment in '{raw}'.")
                return []
            if seg.isdigit():
                processed.append(int(seg))
            elif seg.upper() == "APPEND":
                processed.append(self.ARRAY_APPEND_MARKER)
            else:
                processed.append(seg.lower())
        return processed

    def _iter_env_overrides(self, *, strict: bool) -> Iterator[Tuple[List[Union[str, int, object]], Any]]:
        for key in sorted(os.environ.keys()):
            if not key.startswith(ENV_PREFIX):
                continue
            raw = key[len(ENV_PREFIX):]
            path = self._parse_env_key(raw, strict=strict)
            if not path:
                continue
            yield path, self._coerce_type(os.environ[key])

    def _set_nested(self, root: Dict[str, Any], path: List[Union[str, int, object]], value: Any) -> None:
        if not path:
            return

        cur: Any = root
        for i, part in enumerate(path[:-1]):
            nxt = path[i + 1]
            if isinstance(part, int) or part is self.ARRAY_APPEND_MARKER:
                raise ValueError("Invalid path: list index/APPEND may only appear at leaf")
            if not isinstance(cur, dict):
                raise ValueError("Path traverses non-dict container")
            if part not in cur or cur[part] is None:
                cur[part] = [] if (isinstance(nxt, int) or nxt is self.ARRAY_APPEND_MARKER) else {}
            cur = cur[part]

        leaf = path[-1]
        if leaf is self.ARRAY_APPEND_MARKER:
            if not isinstance(cur, list):
                raise ValueError("APPEND requires list")
            cur.append(value)
        elif isinstance(leaf, int):
            if not isinstance(cur, list):
                raise ValueError("Index assignment requires list")
            while len(cur) <= leaf:
                cur.append(None)
            cur[leaf] = value
        else:
            if not isinstance(cur, dict):
                raise ValueError("Key assignment requires dict")
            cur[leaf] = value

    def apply_env_overrides(self, cfg: Dict[str, Any], *, strict: bool) -> None:
        for path, typed_value in self._iter_env_overrides(strict=strict):
            self._set_nested(cfg, path, typed_value)

    # ========== Loading ==========

    def _load_config_uncached(self, validate: bool = True) -> Dict[str, Any]:
        """Load and merge configuration from all layers (UNCACHED)."""
        cfg: Dict[str, Any] = {}
        cfg = overlay_yaml_directory(cfg, self.core_config_dir)
        cfg = overlay_yaml_directory(cfg, self.user_config_dir)
        self.apply_env_overrides(cfg, strict=validate)

        if validate:
            self.validate_schema(cfg)
        return cfg

    def load_config(self, validate: bool = True) -> Dict[str, Any]:
        """Load configuration using the centralized cache.

        ``validate=True`` validates the (cached) config before returning.
        The returned dict should be treated as immutable.
        """
        cfg = get_cached_config(user_config_dir=self.user_config_dir.parent, validate=False)
        if validate:
            # Malformed KCE_* keys are detected even when the dict came from cache.
            _ = list(self._iter_env_overrides(strict=True))
            self.validate_schema(cfg)
        return cfg

    def get(self, key: str, default: Any = None) -> Any:
        """Get a config value by dot-notation key.

        Example:
            >>> ConfigManager().get("history.max_versions_total")
            1000
        """
        current: Any = self.load_config(validate=False)
        for part in key.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current


__all__ = ["ConfigManager", "CONFIG_SCHEMA", "resolve_user_config_dir"]
