# storage.py
from __future__ import annotations

import json
import logging
import os
import tempfile
import time
from typing import Optional

from models import Entry

logger = logging.getLogger(__name__)

# -------------------------------
# Public constants
# -------------------------------

STORAGE_KEY = "exploration-log-planets"
DEFAULT_QUOTA_BYTES = 5 * 1024 * 1024

_STORE_FILENAME = "ExplorationLog_storage.json"


# -------------------------------
# Failures
# -------------------------------

class StorageError(Exception):
    """Base class for key-value store failures."""


class LoadFailure(StorageError):
    """Persisted data could not be read or parsed."""


class PersistFailure(StorageError):
    """A write to the store did not go through."""


# -------------------------------
# Time / paths / config
# -------------------------------

def now_millis() -> int:
    return time.time_ns() // 1_000_000


def get_documents_path() -> str:
    home = os.environ.get("USERPROFILE") or os.path.expanduser("~")
    return os.path.join(home, "Documents")


def get_data_path() -> str:
    return os.environ.get("EXPLORATION_LOG_DIR") or get_documents_path()


def get_quota_bytes() -> int:
    raw = (os.environ.get("EXPLORATION_LOG_QUOTA_BYTES") or "").strip()
    if not raw:
        return DEFAULT_QUOTA_BYTES
    try:
        value = int(raw)
    except ValueError:
        logger.warning("Ignoring invalid EXPLORATION_LOG_QUOTA_BYTES=%r", raw)
        return DEFAULT_QUOTA_BYTES
    return max(value, 0)


def get_log_level() -> int:
    name = (os.environ.get("EXPLORATION_LOG_LEVEL") or "INFO").strip().upper()
    level = getattr(logging, name, None)
    if isinstance(level, bool) or not isinstance(level, int):
        logger.warning("Ignoring invalid EXPLORATION_LOG_LEVEL=%r", name)
        return logging.INFO
    return level


def default_store_path() -> str:
    return os.path.join(get_data_path(), _STORE_FILENAME)


# -------------------------------
# Key-value store
# -------------------------------

class LocalStorage:
    """
    String key -> string value store kept in a single JSON file.

    Mirrors browser local storage: values are opaque text, a missing key
    reads as None, and writes beyond the quota are refused.
    A quota of 0 means unlimited.
    """

    def __init__(self, path: Optional[str] = None, quota_bytes: Optional[int] = None):
        self.path = path or default_store_path()
        self.quota_bytes = get_quota_bytes() if quota_bytes is None else quota_bytes

    def _read_all(self) -> dict[str, str]:
        if not os.path.isfile(self.path):
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as ex:
            raise LoadFailure(f"could not read store {self.path}: {ex}") from ex
        if not isinstance(data, dict):
            raise LoadFailure(f"store {self.path} does not hold a key-value object")
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def get_item(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set_item(self, key: str, value: str) -> None:
        try:
            data = self._read_all()
        except LoadFailure:
            # an unreadable store is replaced rather than blocking every write
            logger.warning("Overwriting unreadable store %s", self.path)
            data = {}
        data[key] = value

        if self.quota_bytes:
            used = sum(len(k) + len(v) for k, v in data.items())
            if used > self.quota_bytes:
                raise PersistFailure(
                    f"storage quota exceeded ({used} > {self.quota_bytes})"
                )

        self._write_all(data)

    def _write_all(self, data: dict[str, str]) -> None:
        folder = os.path.dirname(self.path) or "."
        tmp_path = None
        try:
            os.makedirs(folder, exist_ok=True)
            fd, tmp_path = tempfile.mkstemp(prefix=".storage-", suffix=".tmp", dir=folder)
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            # the old store stays intact until the new one is complete
            os.replace(tmp_path, self.path)
        except OSError as ex:
            if tmp_path and os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise PersistFailure(f"could not write store {self.path}: {ex}") from ex


# -------------------------------
# Log (de)serialization
# -------------------------------

def serialize_log(entries: list[Entry]) -> str:
    return json.dumps([e.to_dict() for e in entries], ensure_ascii=False, separators=(",", ":"))


def deserialize_log(raw: Optional[str]) -> list[Entry]:
    if raw is None:
        raise LoadFailure("no stored log")
    try:
        data = json.loads(raw)
    except ValueError as ex:
        raise LoadFailure(f"stored log is not valid JSON: {ex}") from ex

    if data is None:
        return []
    if not isinstance(data, list):
        raise LoadFailure(f"stored log must be an array, got {type(data).__name__}")

    entries: list[Entry] = []
    seen: set[int] = set()
    for raw_entry in data:
        try:
            e = Entry.from_dict(raw_entry)
        except ValueError as ex:
            raise LoadFailure(f"stored log holds a malformed entry: {ex}") from ex
        if e.id in seen:
            raise LoadFailure(f"stored log repeats entry id {e.id}")
        seen.add(e.id)
        entries.append(e)
    return entries
