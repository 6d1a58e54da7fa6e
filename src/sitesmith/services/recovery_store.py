"""Keyed string stores for recovery snapshots of unsaved edits.

A snapshot is two entries: `<key>` holding the working document and
`<key>-timestamp` holding the write time in epoch milliseconds. The stores
know nothing about that layout; the helpers at the bottom of this module do.
"""

import time
from pathlib import Path
from typing import Dict, List, Optional, Protocol
from urllib.parse import quote, unquote

from sitesmith.services.exceptions import RecoveryQuotaExceededError
from sitesmith.services.file_operations import atomic_write
from sitesmith.utils.logging import get_logger


logger = get_logger(__name__)

TIMESTAMP_SUFFIX = "-timestamp"
SNAPSHOT_PREFIX = "website-editor-"


class RecoveryStore(Protocol):
    """Minimal keyed string store."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...

    def remove(self, key: str) -> None: ...

    def keys(self) -> List[str]: ...


class MemoryRecoveryStore:
    """In-process store, optionally bounded by a byte quota."""

    def __init__(self, quota_bytes: Optional[int] = None) -> None:
        self._data: Dict[str, str] = {}
        self.quota_bytes = quota_bytes

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        if self.quota_bytes is not None:
            used = sum(len(v.encode("utf-8")) for k, v in self._data.items() if k != key)
            needed = used + len(value.encode("utf-8"))
            if needed > self.quota_bytes:
                raise RecoveryQuotaExceededError(key, needed, self.quota_bytes)
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)

    def keys(self) -> List[str]:
        return list(self._data)


class FileRecoveryStore:
    """
    Store backed by one file per key in a directory.

    Example:
        >>> store = FileRecoveryStore(Path("~/.cache/sitesmith/recovery").expanduser())
        >>> store.set("website-editor-abc", "<html>...</html>")
        >>> store.get("website-editor-abc")
        '<html>...</html>'
    """

    def __init__(self, directory: Path, quota_bytes: Optional[int] = None) -> None:
        self.directory = directory
        self.quota_bytes = quota_bytes
        self.directory.mkdir(parents=True, exist_ok=True)

    def _path(self, key: str) -> Path:
        return self.directory / quote(key, safe="-_.")

    def get(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set(self, key: str, value: str) -> None:
        path = self._path(key)
        if self.quota_bytes is not None:
            used = sum(
                p.stat().st_size for p in self.directory.iterdir()
                if p.is_file() and not p.name.startswith(".") and p != path
            )
            needed = used + len(value.encode("utf-8"))
            if needed > self.quota_bytes:
                raise RecoveryQuotaExceededError(key, needed, self.quota_bytes)
        atomic_write(path, value)

    def remove(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)

    def keys(self) -> List[str]:
        return sorted(
            unquote(p.name) for p in self.directory.iterdir()
            if p.is_file() and not p.name.startswith(".")
        )


def timestamp_key(key: str) -> str:
    """Key of the timestamp entry paired with a snapshot."""
    return f"{key}{TIMESTAMP_SUFFIX}"


def write_snapshot(store: RecoveryStore, key: str, content: str, now: Optional[float] = None) -> None:
    """
    Write a snapshot and its timestamp.

    Either both entries are written or neither is; a failed write also drops
    any previous snapshot under the same key.

    Raises:
        RecoveryQuotaExceededError: If the store is full
        OSError: On file I/O errors
    """
    stamp = int((now if now is not None else time.time()) * 1000)
    try:
        store.set(key, content)
        store.set(timestamp_key(key), str(stamp))
    except (RecoveryQuotaExceededError, OSError):
        remove_snapshot(store, key)
        raise


def remove_snapshot(store: RecoveryStore, key: str) -> None:
    """Remove a snapshot and its timestamp."""
    store.remove(key)
    store.remove(timestamp_key(key))


def _parse_stamp(raw: Optional[str]) -> int:
    try:
        return int(raw or "0")
    except ValueError:
        return 0


def _snapshot_ages(store: RecoveryStore) -> List[tuple]:
    """(stamp, key) of every snapshot, oldest first.

    Half-written snapshots count as oldest: a content entry without its
    timestamp gets stamp 0, and a timestamp without content keeps its stamp.
    """
    keys = set(store.keys())
    entries = []
    for key in keys:
        if key.endswith(TIMESTAMP_SUFFIX):
            base = key[: -len(TIMESTAMP_SUFFIX)]
            if base not in keys:
                entries.append((_parse_stamp(store.get(key)), base))
            continue
        stamp_key = timestamp_key(key)
        stamp = _parse_stamp(store.get(stamp_key)) if stamp_key in keys else 0
        entries.append((stamp, key))
    entries.sort()
    return entries


def prune_oldest(store: RecoveryStore, fraction: float = 0.2) -> int:
    """
    Free space by removing the oldest snapshots.

    Removes the oldest `fraction` of snapshots, and at least one
    when any exist.

    Returns:
        Number of snapshots removed
    """
    entries = _snapshot_ages(store)
    if not entries:
        return 0

    count = max(1, int(len(entries) * fraction))
    for _, key in entries[:count]:
        remove_snapshot(store, key)

    logger.info("recovery_store_pruned", removed=count, remaining=len(entries) - count)
    return count


def cleanup_stale(store: RecoveryStore, max_age_seconds: float, now: Optional[float] = None) -> int:
    """
    Remove editor snapshots older than `max_age_seconds`.

    Returns:
        Number of snapshots removed
    """
    now_ms = int((now if now is not None else time.time()) * 1000)
    removed = 0
    for stamp, key in _snapshot_ages(store):
        if not key.startswith(SNAPSHOT_PREFIX):
            continue
        if now_ms - stamp > max_age_seconds * 1000:
            remove_snapshot(store, key)
            removed += 1

    if removed:
        logger.info("recovery_store_cleaned", removed=removed)
    return removed
