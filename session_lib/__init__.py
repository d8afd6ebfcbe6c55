"""Pluggable HTTP sessions with one-request flash values."""

from .backends import BackendRegistry, CookieSessionBackend, StoreSessionBackend, default_registry
from .config import SessionConfig, load_config
from .errors import SessionError, SessionTooLargeError, UnknownBackendError
from .helpers import (
    alter_session,
    apply_session,
    destroy_session,
    flash_assoc,
    session_assoc,
    session_dissoc,
    set_session,
)
from .lifecycle import SessionLifecycle
from .middleware import SessionMiddleware
from .signing import CookieSigner, CookieResult

__all__ = [
    "BackendRegistry",
    "CookieResult",
    "CookieSessionBackend",
    "CookieSigner",
    "SessionConfig",
    "SessionError",
    "SessionLifecycle",
    "SessionMiddleware",
    "SessionTooLargeError",
    "StoreSessionBackend",
    "UnknownBackendError",
    "alter_session",
    "apply_session",
    "default_registry",
    "destroy_session",
    "flash_assoc",
    "load_config",
    "session_assoc",
    "session_dissoc",
    "set_session",
]
