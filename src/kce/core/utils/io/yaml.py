"""PyYAML helpers shared by the kubeconfig codec and the configuration loader."""
from __future__ import annotations

import fcntl
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml


class _KubeconfigDumper(yaml.SafeDumper):
    """SafeDumper that writes multi-line strings (PEM blocks, scripts) as ``|`` literals."""


def _represent_str(dumper: yaml.SafeDumper, data: str) -> yaml.ScalarNode:
    style = "|" if "\n" in data else None
    return dumper.represent_scalar("tag:yaml.org,2002:str", data, style=style)


_KubeconfigDumper.add_representer(str, _represent_str)


def read_yaml(path: Path, default: Any = None, raise_on_error: bool = False) -> Any:
    """Parse ``path`` under a shared lock.

    A missing file, unreadable file, invalid YAML or empty document yields
    ``default``. With ``raise_on_error`` the first three raise instead.
    """
    source = Path(path)
    if not source.exists():
        if raise_on_error:
            raise FileNotFoundError(f"File not found: {source}")
        return default

    try:
        with open(source, "r", encoding="utf-8") as handle:
            fcntl.flock(handle.fileno(), fcntl.LOCK_SH)
            try:
                data = yaml.safe_load(handle)
            finally:
                fcntl.flock(handle.fileno(), fcntl.LOCK_UN)
    except (OSError, yaml.YAMLError):
        if raise_on_error:
            raise
        return default
    return default if data is None else data


def dump_yaml_string(data: Any, sort_keys: bool = True, width: Optional[int] = None) -> str:
    """Serialize ``data`` in block style; ``width`` overrides PyYAML's line folding."""
    options: Dict[str, Any] = {}
    if width is not None:
        options["width"] = width
    return yaml.dump(
        data,
        Dumper=_KubeconfigDumper,
        default_flow_style=False,
        sort_keys=sort_keys,
        allow_unicode=True,
        **options,
    )


def iter_yaml_files(dir_path: Path) -> List[Path]:
    """``*.yaml`` and ``*.yml`` files of ``dir_path`` sorted by stem.

    When a stem exists with both suffixes only the ``.yaml`` file is listed.
    """
    folder = Path(dir_path)
    if not folder.is_dir():
        return []
    by_stem: Dict[str, Path] = {p.stem: p for p in folder.glob("*.yml")}
    by_stem.update({p.stem: p for p in folder.glob("*.yaml")})
    return [by_stem[stem] for stem in sorted(by_stem)]


__all__ = ["read_yaml", "dump_yaml_string", "iter_yaml_files"]
