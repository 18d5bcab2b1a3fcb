"""Key-value persistence for storefront state (the browser-profile equivalent)."""
import json
import os
from typing import Any, Dict, Optional, Protocol

from filelock import FileLock


class KeyValueStorage(Protocol):
    def get(self, key: str) -> Optional[Any]: ...

    def set(self, key: str, value: Any) -> None: ...

    def remove(self, key: str) -> None: ...


class MemoryStorage:
    def __init__(self, initial: Optional[Dict[str, Any]] = None):
        self._data: Dict[str, Any] = {}
        for key, value in (initial or {}).items():
            self.set(key, value)

    def get(self, key: str) -> Optional[Any]:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    def set(self, key: str, value: Any) -> None:
        # stored serialized so callers never share mutable state with the store
        self._data[key] = json.dumps(value)

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStorage:
    """
    One JSON document per profile on disk, e.g. ``~/.freshcart/default.json``.

    Each get, set or remove re-reads the file under the lock. A caller doing
    read-then-write across two calls is not atomic against another process.
    """

    def __init__(self, path: str, lock_timeout: float = 10):
        self.path = path
        self.lock = FileLock(path + ".lock", timeout=lock_timeout)
        directory = os.path.dirname(os.path.abspath(path))
        os.makedirs(directory, exist_ok=True)

    def _read(self) -> Dict[str, Any]:
        if not os.path.exists(self.path):
            return {}
        with open(self.path, "r", encoding="utf-8") as fh:
            content = fh.read()
        return json.loads(content) if content.strip() else {}

    def _write(self, data: Dict[str, Any]) -> None:
        tmp = self.path + ".tmp"
        with open(tmp, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2, sort_keys=True)
        os.replace(tmp, self.path)

    def get(self, key: str) -> Optional[Any]:
        with self.lock:
            return self._read().get(key)

    def set(self, key: str, value: Any) -> None:
        with self.lock:
            data = self._read()
            data[key] = value
            self._write(data)

    def remove(self, key: str) -> None:
        with self.lock:
            data = self._read()
            if key in data:
                del data[key]
                self._write(data)
