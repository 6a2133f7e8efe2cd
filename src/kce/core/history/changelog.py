"""Human-readable change log appended on every snapshot."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional

from kce.core.config.domains import HistoryConfig
from kce.core.utils.io import append_text
from kce.core.utils.time import utc_timestamp

logger = logging.getLogger(__name__)


def format_entry(reason: str, previous: Optional[str], current: str, *, max_lines: Optional[int] = None) -> str:
    """One entry: header, removed lines, added lines, blank separator.

    Lines are compared as sets, so moved lines do not show up.
    """
    limit = HistoryConfig().changelog_max_lines if max_lines is None else max_lines
    old_lines = previous.split("\n") if previous is not None else []
    new_lines = current.split("\n")
    old_set = set(old_lines)
    new_set = set(new_lines)

    removed = [line for line in old_lines if line not in new_set][:limit]
    added = [line for line in new_lines if line not in old_set][:limit]

    out: List[str] = [f"[{utc_timestamp()}] reason={reason}"]
    out.extend(f"- {line}" for line in removed)
    out.extend(f"+ {line}" for line in added)
    out.append("")
    return "\n".join(out) + "\n"


def append_entry(path: Path, reason: str, previous: Optional[str], current: str) -> None:
    """Append an entry to ``path``; failures are logged, never raised."""
    try:
        append_text(path, format_entry(reason, previous, current))
    except OSError as exc:
        logger.warning("Cannot write change log %s: %s", path, exc)


__all__ = ["format_entry", "append_entry"]
