"""Content-addressed, append-only version store for one lineage.

Layout of a lineage directory::

    <lineage>/
      HEAD                     id of the newest version
      objects/ab/cdef...       full document text, keyed by sha256 of the text
      versions/<id>.json       one immutable record per version

A record is ``{id, blob, parent, created_at, reason, summary, seq}``. The
version id is the sha256 of the blob hash, parent id, timestamp and reason,
so identical content saved twice still yields two versions while every id
maps to exactly one blob.
"""
from __future__ import annotations

import hashlib
import json
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from kce.core.exceptions import StorageError
from kce.core.utils.io import (
    acquire_file_lock,
    ensure_directory,
    read_json,
    read_text,
    write_json_atomic,
    write_text,
)
from kce.core.utils.time import parse_iso8601, utc_timestamp

logger = logging.getLogger(__name__)

HEAD_FILE = "HEAD"
OBJECTS_DIR = "objects"
VERSIONS_DIR = "versions"


def content_hash(content: str) -> str:
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class SavedVersion:
    """One durable version as seen by listings and rollback."""

    id: str
    lineage_key: str
    content_ref: str
    created_at: str
    summary: str
    reason: str
    location: Path
    seq: int = 0

    @property
    def short_id(self) -> str:
        return self.id[:7]

    @property
    def display_name(self) -> str:
        return f"{self.short_id}  {self.summary}"

    def sort_key(self) -> tuple:
        try:
            stamp = parse_iso8601(self.created_at).timestamp()
        except ValueError:
            stamp = 0.0
        return (stamp, self.seq)


class VersionStore:
    """Reads and appends versions of a single lineage directory."""

    def __init__(self, root: Path, *, lineage_key: Optional[str] = None) -> None:
        self.root = Path(root)
        self.lineage_key = lineage_key or self.root.name

    @property
    def objects_dir(self) -> Path:
        return self.root / OBJECTS_DIR

    @property
    def versions_dir(self) -> Path:
        return self.root / VERSIONS_DIR

    @property
    def head_path(self) -> Path:
        return self.root / HEAD_FILE

    def exists(self) -> bool:
        return self.versions_dir.is_dir()

    def is_empty(self) -> bool:
        if not self.exists():
            return True
        return not any(self.versions_dir.glob("*.json"))

    def _object_path(self, blob: str) -> Path:
        return self.objects_dir / blob[:2] / blob[2:]

    def _record_path(self, version_id: str) -> Path:
        return self.versions_dir / f"{version_id}.json"

    def _read_head(self) -> Optional[str]:
        if not self.head_path.exists():
            return None
        head = read_text(self.head_path).strip()
        return head or None

    def _read_record(self, path: Path) -> Optional[Dict[str, Any]]:
        try:
            data = read_json(path)
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Skipping unreadable version record %s: %s", path, exc)
            return None
        if not isinstance(data, dict) or not data.get("id") or not data.get("blob"):
            logger.warning("Skipping malformed version record %s", path)
            return None
        return data

    def _to_version(self, record: Dict[str, Any]) -> SavedVersion:
        return SavedVersion(
            id=str(record["id"]),
            lineage_key=self.lineage_key,
            content_ref=str(record["blob"]),
            created_at=str(record.get("created_at", "")),
            summary=str(record.get("summary", "")),
            reason=str(record.get("reason", "")),
            location=self.root,
            seq=int(record.get("seq", 0) or 0),
        )

    def put_version(self, content: str, reason: str) -> SavedVersion:
        """Append ``content`` as the newest version and return it.

        Raises:
            StorageError: The lineage directory cannot be written.
        """
        try:
            ensure_directory(self.root)
            with acquire_file_lock(self.head_path):
                parent = self._read_head()
                parent_record = self._read_record(self._record_path(parent)) if parent else None
                seq = int(parent_record.get("seq", 0)) + 1 if parent_record else 1

                blob = content_hash(content)
                object_path = self._object_path(blob)
                if not object_path.exists():
                    write_text(object_path, content)

                created_at = utc_timestamp()
                version_id = content_hash(f"{blob}\n{parent or ''}\n{created_at}\n{reason}")
                record = {
                    "id": version_id,
                    "blob": blob,
                    "parent": parent,
                    "created_at": created_at,
                    "reason": reason,
                    "summary": f"save: {reason} at {created_at}",
                    "seq": seq,
                }
                write_json_atomic(self._record_path(version_id), record)
                write_text(self.head_path, version_id + "\n")
        except OSError as exc:
            raise StorageError(f"Cannot append version to {self.root}: {exc}", path=str(self.root)) from exc

        logger.debug("Recorded version %s (%s) in %s", version_id[:7], reason, self.root)
        return self._to_version(record)

    def list_versions(self, limit: Optional[int] = None) -> List[SavedVersion]:
        """Versions of this lineage, newest first."""
        if not self.exists():
            return []
        versions = []
        for path in self.versions_dir.glob("*.json"):
            record = self._read_record(path)
            if record is not None:
                versions.append(self._to_version(record))
        versions.sort(key=SavedVersion.sort_key, reverse=True)
        if limit is not None:
            versions = versions[:limit]
        return versions

    def get_version(self, version_id: str) -> Optional[SavedVersion]:
        path = self._record_path(version_id)
        if not path.exists():
            return None
        record = self._read_record(path)
        return self._to_version(record) if record else None

    def get_content(self, version_id: str) -> Optional[str]:
        """Full text of ``version_id``, or None when this lineage lacks it."""
        version = self.get_version(version_id)
        if version is None:
            return None
        object_path = self._object_path(version.content_ref)
        if not object_path.exists():
            logger.warning("Version %s points at missing object %s", version_id[:7], version.content_ref)
            return None
        return read_text(object_path)

    def latest(self) -> Optional[SavedVersion]:
        head = self._read_head()
        if head:
            version = self.get_version(head)
            if version is not None:
                return version
        versions = self.list_versions(limit=1)
        return versions[0] if versions else None

    def latest_content(self) -> Optional[str]:
        version = self.latest()
        return self.get_content(version.id) if version else None

    def copy_into(self, target: "VersionStore") -> int:
        """Copy every object and record into ``target``; returns records copied.

        Existing files in ``target`` are kept, so running this twice is harmless.
        """
        if not self.exists():
            return 0
        copied = 0
        ensure_directory(target.root)
        with acquire_file_lock(target.head_path):
            for source in self.objects_dir.rglob("*"):
                if not source.is_file():
                    continue
                dest = target.objects_dir / source.relative_to(self.objects_dir)
                if not dest.exists():
                    ensure_directory(dest.parent)
                    shutil.copy2(source, dest)
            for source in self.versions_dir.glob("*.json"):
                dest = target.versions_dir / source.name
                if not dest.exists():
                    ensure_directory(dest.parent)
                    shutil.copy2(source, dest)
                    copied += 1
            if target._read_head() is None:
                head = self._read_head()
                if head:
                    write_text(target.head_path, head + "\n")
        return copied


__all__ = [
    "SavedVersion",
    "VersionStore",
    "content_hash",
]
