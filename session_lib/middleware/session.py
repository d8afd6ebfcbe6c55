
from typing import Optional
import logging

from starlette.datastructures import Headers, MutableHeaders
from starlette.requests import cookie_parser
from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from session_lib.backends import BackendRegistry, default_registry
from session_lib.config import SessionConfig
from session_lib.errors import SessionTooLargeError
from session_lib.helpers import DESTROY_KEY, RESPONSE_SESSION_KEY
from session_lib.lifecycle import RequestSession, SessionLifecycle
from session_lib.storage import StorageBackend

logger = logging.getLogger(__name__)


#############################################
## Session middleware for ASGI
## Resolves the session before the app runs and writes it back when the
## response starts.
#############################################
class SessionMiddleware:
    """ASGI middleware exposing a per-client session to handlers.

    Handlers read `request.session` (Starlette's accessor over
    ``scope["session"]``), `request.scope["flash"]` and
    `request.scope["new_session"]`, and change the session by passing a
    fragment from `session_lib.helpers` to `apply_session`.

    The backend is resolved when the middleware is built, so an unknown
    backend tag fails before any request is served.
    """

    def __init__(self, app: ASGIApp, backend: Optional[str] = None,
                 registry: Optional[BackendRegistry] = None,
                 config: Optional[SessionConfig] = None,
                 storage: Optional[StorageBackend] = None) -> None:
        self.app = app
        self.config = config or SessionConfig()
        self.registry = registry or default_registry(self.config, storage=storage)
        self.backend_tag = backend or self.config.backend
        self.lifecycle = SessionLifecycle(
            self.registry.get(self.backend_tag),
            cookie_name=self.config.cookie_name,
            cookie_path=self.config.cookie_path,
            httponly=self.config.cookie_httponly,
            samesite=self.config.cookie_samesite,
            secure=self.config.cookie_secure,
        )
        logger.info("Session middleware using backend '%s'", self.backend_tag)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope['type'] != 'http':
            await self.app(scope, receive, send)
            return

        cookies = cookie_parser(Headers(scope=scope).get('cookie', ''))
        state = self.lifecycle.open(cookies)
        scope['session'] = state.session
        scope['new_session'] = state.new
        scope['flash'] = state.flash
        scope[RESPONSE_SESSION_KEY] = {}

        failed = False

        async def send_wrapper(message: Message) -> None:
            nonlocal failed
            if failed:
                # error response already sent; drop the app's output
                return
            if message['type'] == 'http.response.start':
                try:
                    self._finish(scope, state, message)
                except SessionTooLargeError as e:
                    failed = True
                    logger.error("Failed to store session: %s", e)
                    response = JSONResponse(status_code=500, content={'error': 'session_too_large', 'message': str(e)})
                    await response(scope, receive, send)
                    return
            await send(message)

        await self.app(scope, receive, send_wrapper)

    def _finish(self, scope: Scope, state: RequestSession, message: Message) -> None:
        fragment = scope.get(RESPONSE_SESSION_KEY) or {}
        headers = MutableHeaders(scope=message)

        if fragment.get(DESTROY_KEY):
            self.lifecycle.destroy(state.session)
            headers.append('set-cookie', self.lifecycle.set_cookie_header('', max_age=0))
            return

        response_session = fragment.get('session')
        value = self.lifecycle.finish(state, response_session, response_session is not None)
        if value is not None:
            headers.append('set-cookie', self.lifecycle.set_cookie_header(value))
