"""Key/value stores and the sensitive-data guard in front of them."""

import json
import re
from pathlib import Path
from typing import Dict, Optional, Protocol, runtime_checkable

from foodlink.app.core.config import settings
from foodlink.app.core.logging import get_logger
from foodlink.app.exceptions import StorageError, StorageQuotaExceededError

logger = get_logger(__name__)


# Keys or values matching any of these never reach the store
SENSITIVE_PATTERNS = [
    re.compile(r"password", re.IGNORECASE),
    re.compile(r"secret", re.IGNORECASE),
    re.compile(r"private", re.IGNORECASE),
    re.compile(r"ssn", re.IGNORECASE),
    re.compile(r"social.*security", re.IGNORECASE),
    re.compile(r"credit.*card", re.IGNORECASE),
]


@runtime_checkable
class KeyValueStore(Protocol):
    """String key/value store provided by the host."""

    def get_item(self, key: str) -> Optional[str]:
        ...

    def set_item(self, key: str, value: str) -> None:
        ...

    def remove_item(self, key: str) -> None:
        ...


class InMemoryKeyValueStore:
    """Dict-backed store with a byte quota on keys plus values."""

    def __init__(self, max_bytes: Optional[int] = None):
        self.max_bytes = settings.storage_quota_bytes if max_bytes is None else max_bytes
        self._data: Dict[str, str] = {}

    @staticmethod
    def _size(key: str, value: str) -> int:
        return len(key.encode("utf-8")) + len(value.encode("utf-8"))

    def used_bytes(self) -> int:
        return sum(self._size(k, v) for k, v in self._data.items())

    def get_item(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        current = self._data.get(key)
        required = self.used_bytes() + self._size(key, value)
        if current is not None:
            required -= self._size(key, current)
        if required > self.max_bytes:
            raise StorageQuotaExceededError(self.max_bytes, required)
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._data.pop(key, None)


class JSONFileKeyValueStore:
    """Store persisted as a single JSON object on disk."""

    def __init__(self, path: str | Path):
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Failed to read {self.path}: {e}") from e
        if not isinstance(data, dict):
            raise StorageError(f"{self.path} does not contain a JSON object")
        return data

    def _dump(self, data: Dict[str, str]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Failed to write {self.path}: {e}") from e

    def get_item(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set_item(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._dump(data)

    def remove_item(self, key: str) -> None:
        data = self._load()
        if data.pop(key, None) is not None:
            self._dump(data)


def is_sensitive(text: str) -> bool:
    return any(pattern.search(text) for pattern in SENSITIVE_PATTERNS)


class SecureStorage:
    """Best-effort wrapper that keeps sensitive data out of the store.

    Storage failures are logged and swallowed so a full or broken store
    never takes the caller down.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    def set_item(self, key: str, value: str) -> None:
        if is_sensitive(key) or is_sensitive(value):
            logger.warning(f"Refused to store sensitive data under key: {key}")
            return

        try:
            self.store.set_item(key, value)
        except Exception as e:
            logger.error(f"Failed to store item {key}: {e}")

    def get_item(self, key: str) -> Optional[str]:
        try:
            return self.store.get_item(key)
        except Exception as e:
            logger.error(f"Failed to retrieve item {key}: {e}")
            return None

    def remove_item(self, key: str) -> None:
        try:
            self.store.remove_item(key)
        except Exception as e:
            logger.error(f"Failed to remove item {key}: {e}")
