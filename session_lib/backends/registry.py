from __future__ import annotations
import logging
from typing import Callable, Dict, Iterable, Optional

from session_lib.config import SessionConfig, resolve_secret_key
from session_lib.errors import UnknownBackendError
from session_lib.signing import CookieSigner
from session_lib.storage import StorageBackend, create_storage

from .cookie import CookieSessionBackend
from .interfaces import SessionBackendProtocol
from .store import StoreSessionBackend

logger = logging.getLogger(__name__)

COOKIE_BACKEND = "cookie"
STORE_BACKEND = "store"


class BackendRegistry:
    """Maps backend tags to session backends.

    Register either a ready instance or a zero-argument factory. Factories
    are evaluated on first lookup and the result is cached for that tag.
    Each registry is independent; there is no process-wide table.
    """

    def __init__(self) -> None:
        self._backends: Dict[str, SessionBackendProtocol] = {}
        self._factories: Dict[str, Callable[[], SessionBackendProtocol]] = {}

    def register(self, tag: str, backend: SessionBackendProtocol) -> None:
        if not isinstance(backend, SessionBackendProtocol):
            raise TypeError(f"Backend for '{tag}' does not implement the session backend operations")
        self._factories.pop(tag, None)
        self._backends[tag] = backend
        logger.debug("Registered session backend '%s'", tag)

    def register_factory(self, tag: str, factory: Callable[[], SessionBackendProtocol]) -> None:
        self._backends.pop(tag, None)
        self._factories[tag] = factory
        logger.debug("Registered session backend factory '%s'", tag)

    def get(self, tag: str) -> SessionBackendProtocol:
        if tag in self._backends:
            return self._backends[tag]
        if tag in self._factories:
            backend = self._factories.pop(tag)()
            self.register(tag, backend)
            return backend
        raise UnknownBackendError(tag)

    def tags(self) -> Iterable[str]:
        return sorted(set(self._backends) | set(self._factories))

    def __contains__(self, tag: object) -> bool:
        return tag in self._backends or tag in self._factories


def default_registry(config: Optional[SessionConfig] = None,
                     storage: Optional[StorageBackend] = None,
                     secret_key: Optional[bytes] = None) -> BackendRegistry:
    """Return a new registry holding the built-in `cookie` and `store` backends.

    Both are registered as factories so an app that only uses one backend
    never builds the other (no key generation, no storage directories).
    """
    cfg = config or SessionConfig()
    registry = BackendRegistry()

    def _cookie() -> SessionBackendProtocol:
        key = secret_key if secret_key is not None else resolve_secret_key(cfg)
        return CookieSessionBackend(CookieSigner(key, max_size=cfg.max_cookie_size))

    def _store() -> SessionBackendProtocol:
        store = storage if storage is not None else create_storage(
            backend=cfg.storage_backend,
            serializer=cfg.storage_serializer,
            data_dir=cfg.data_dir,
        )
        return StoreSessionBackend(store)

    registry.register_factory(COOKIE_BACKEND, _cookie)
    registry.register_factory(STORE_BACKEND, _store)
    return registry
