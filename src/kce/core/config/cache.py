"""Process-wide cache of the merged kce configuration.

Domain accessors (``kce.core.config.domains``) never read YAML themselves;
they call :func:`get_cached_config`. The cache key covers the ``KCE_*``
environment and the stat of every user overlay file, so editing either one
is picked up on the next access without an explicit reset.
"""
from __future__ import annotations

import hashlib
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

ENV_PREFIX = "KCE_"

_config_cache: Dict[str, Dict[str, Any]] = {}


def _digest(value: object) -> str:
    return hashlib.sha256(repr(value).encode("utf-8")).hexdigest()[:12]


def _overlay_stats(overlay_dir: Path) -> List[Tuple[str, int, int]]:
    from kce.core.utils.io import iter_yaml_files

    stats: List[Tuple[str, int, int]] = []
    for path in iter_yaml_files(overlay_dir):
        try:
            st = path.stat()
            stats.append((path.name, st.st_mtime_ns, st.st_size))
        except OSError:
            stats.append((path.name, 0, 0))
    return stats


def _cache_key(user_config_dir: Optional[Path]) -> str:
    from .manager import resolve_user_config_dir

    env = sorted((k, v) for k, v in os.environ.items() if k.startswith(ENV_PREFIX))
    overlay_dir = (user_config_dir or resolve_user_config_dir()) / "config"
    return f"{overlay_dir}:env={_digest(env)}:cfg={_digest(_overlay_stats(overlay_dir))}"


def get_cached_config(
    user_config_dir: Optional[Path] = None,
    validate: bool = False,
) -> Dict[str, Any]:
    """Merged configuration for ``user_config_dir`` (resolved when None).

    ``validate`` applies the schema check on a cache miss only. The returned
    dict is shared; treat it as read-only.
    """
    key = _cache_key(user_config_dir)
    if key not in _config_cache:
        from .manager import ConfigManager

        manager = ConfigManager(user_config_dir=user_config_dir)
        _config_cache[key] = manager._load_config_uncached(validate=validate)
    return _config_cache[key]


def is_cached(user_config_dir: Optional[Path] = None) -> bool:
    return _cache_key(user_config_dir) in _config_cache


def clear_all_caches() -> None:
    """Forget every merged configuration (tests, or after moving the overlay root)."""
    _config_cache.clear()


__all__ = ["ENV_PREFIX", "get_cached_config", "is_cached", "clear_all_caches"]
