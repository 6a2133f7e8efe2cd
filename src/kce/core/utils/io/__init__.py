"""File I/O for kce: atomic text writes, YAML, JSON records and advisory locks."""
from __future__ import annotations

from .core import (
    PathLike,
    append_text,
    atomic_write,
    ensure_directory,
    read_text,
    write_text,
)
from .json import read_json, write_json_atomic
from .locking import LockTimeoutError, acquire_file_lock
from .yaml import dump_yaml_string, iter_yaml_files, read_yaml

__all__ = [
    "PathLike",
    "ensure_directory",
    "atomic_write",
    "read_text",
    "write_text",
    "append_text",
    "read_yaml",
    "dump_yaml_string",
    "iter_yaml_files",
    "read_json",
    "write_json_atomic",
    "acquire_file_lock",
    "LockTimeoutError",
]
