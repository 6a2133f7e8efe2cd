"""UTC timestamps for version records, undo snapshots and change logs.

Precision and suffix come from ``time.iso8601`` in the configuration.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

BACKUP_STAMP_FORMAT = "%Y-%m-%dT%H-%M-%SZ"


def _time_config():
    from kce.core.config.domains.time import TimeConfig

    return TimeConfig()


def utc_now() -> datetime:
    now = datetime.now(timezone.utc)
    if _time_config().strip_microseconds:
        now = now.replace(microsecond=0)
    return now


def format_timestamp(dt: datetime) -> str:
    """Render ``dt`` in UTC as ISO 8601 (``Z`` suffix when configured)."""
    cfg = _time_config()
    stamp = dt.astimezone(timezone.utc).isoformat(timespec=cfg.timespec)
    if cfg.use_z_suffix and stamp.endswith("+00:00"):
        stamp = stamp[: -len("+00:00")] + "Z"
    return stamp


def utc_timestamp() -> str:
    return format_timestamp(utc_now())


def filename_timestamp(dt: Optional[datetime] = None) -> str:
    """Second-precision UTC stamp without colons, safe inside file names."""
    moment = dt or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).strftime(BACKUP_STAMP_FORMAT)


def parse_iso8601(timestamp_str: str) -> datetime:
    """Parse an ISO 8601 string; naive values are taken as UTC."""
    text = timestamp_str.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


__all__ = ["utc_now", "utc_timestamp", "format_timestamp", "filename_timestamp", "parse_iso8601"]
