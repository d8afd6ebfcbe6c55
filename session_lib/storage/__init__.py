"""Storage abstraction package for session_lib."""

from .base import StorageBackend
from .file_backend import FileStorageBackend
from .memory_backend import MemoryStorage
from .serializer import get_serializer


def create_storage(backend: str = "memory", serializer: str = "pickle", data_dir: str = "data") -> StorageBackend:
    """Build a storage backend by name.

    `backend` is ``"memory"`` or ``"file"``; `serializer` only applies to
    the file backend. Unknown names raise `ValueError`.
    """
    if backend == "memory":
        return MemoryStorage()
    if backend == "file":
        return FileStorageBackend(data_dir=data_dir, serializer=get_serializer(serializer))
    raise ValueError(f"Unknown storage backend '{backend}'")


__all__ = ["StorageBackend", "FileStorageBackend", "MemoryStorage", "create_storage"]
