"""Memory-backed storage backend

Values are kept in a nested dict `[<namespace>][<key>]` for the lifetime
of the process.
"""
from copy import deepcopy
from threading import RLock
from typing import Dict, Any, Iterable

from .base import StorageBackend


class MemoryStorage(StorageBackend):
    def __init__(self):
        self._lock = RLock()
        self._store: Dict[str, Dict[str, Any]] = {}

    # Copies on the way in and out so callers never share a stored dict.
    def save(self, namespace: str, key: str, value: Any) -> None:
        with self._lock:
            self._store.setdefault(namespace, {})[key] = deepcopy(value)

    def load(self, namespace: str, key: str) -> Any:
        with self._lock:
            ns = self._store.get(namespace, {})
            if key not in ns:
                raise KeyError(key)
            return deepcopy(ns[key])

    def delete(self, namespace: str, key: str) -> None:
        with self._lock:
            ns = self._store.get(namespace, {})
            if key not in ns:
                raise KeyError(key)
            del ns[key]

    def list_keys(self, namespace: str) -> Iterable[str]:
        with self._lock:
            return list(self._store.get(namespace, {}).keys())

    def exists(self, namespace: str, key: str) -> bool:
        with self._lock:
            return key in self._store.get(namespace, {})
