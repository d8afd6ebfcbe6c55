from .cookie import CookieSessionBackend
from .interfaces import SessionBackendProtocol
from .registry import BackendRegistry, default_registry, COOKIE_BACKEND, STORE_BACKEND
from .store import StoreSessionBackend

__all__ = [
	"BackendRegistry",
	"CookieSessionBackend",
	"SessionBackendProtocol",
	"StoreSessionBackend",
	"default_registry",
	"COOKIE_BACKEND",
	"STORE_BACKEND",
]
