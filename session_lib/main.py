"""Application factory wiring session handling into a FastAPI app.

    from session_lib.main import create_app
    from session_lib.config import load_config
    app = create_app(load_config())

Routes are added by the caller; the factory only installs the session
middleware and a health endpoint. Nothing happens at import time.
"""
from typing import Optional
import time

from fastapi import FastAPI

from session_lib.backends import BackendRegistry, default_registry
from session_lib.config import SessionConfig, resolve_secret_key
from session_lib.logging_config import configure_logging
from session_lib.middleware import SessionMiddleware
from session_lib.storage import StorageBackend

_START_TIME = time.time()


def create_app(config: Optional[SessionConfig] = None,
               registry: Optional[BackendRegistry] = None,
               storage: Optional[StorageBackend] = None) -> FastAPI:
    """Create a FastAPI app with session middleware installed.

    The configured backend is looked up here so an unknown tag raises
    `UnknownBackendError` from the factory rather than on the first request.
    """
    config = config or SessionConfig()
    logger = configure_logging(config.log_level)

    if registry is None:
        # Only generate (and warn about) a key when the cookie backend is in use.
        secret_key = resolve_secret_key(config) if config.backend == 'cookie' else None
        registry = default_registry(config, storage=storage, secret_key=secret_key)
    registry.get(config.backend)

    app = FastAPI(title="Session Server")
    app.state.session_registry = registry
    app.add_middleware(SessionMiddleware, backend=config.backend, registry=registry, config=config)

    @app.get('/api/health')
    async def api_health():
        return {'status': 'ok', 'uptime_seconds': int(time.time() - _START_TIME), 'session_backend': config.backend}

    logger.info("Session app created with backend '%s'", config.backend)
    return app
