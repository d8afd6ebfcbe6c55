"""Session lifecycle for a single request.

`SessionLifecycle` wires a session backend into request handling:

1. `open` resolves the session from the request cookies (or creates a
   new one) and splits the flash off the session.
2. The handler runs and may return a replacement session.
3. `finish` decides whether to persist the session and which value, if
   any, to send back in the session cookie.

`wrap` applies the same steps to mapping-style handlers
(``handler(request: dict) -> dict | None``). The ASGI integration in
`session_lib.middleware` builds on `open` and `finish`.

Nothing here locks. Two concurrent requests for the same session both
read, then both write, and the last write wins.
"""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional

from starlette.requests import cookie_parser
from starlette.responses import Response

from .backends.interfaces import SessionBackendProtocol

logger = logging.getLogger(__name__)

SESSION_COOKIE = "compojure-session"
FLASH_KEY = "flash"
ID_KEY = "id"

Handler = Callable[[dict], Optional[dict]]


@dataclass
class RequestSession:
    """Session state resolved for one request."""

    session: dict[str, Any]
    new: bool
    flash: dict[str, Any] = field(default_factory=dict)


def build_set_cookie(name: str, value: str, path: str = "/", max_age: Optional[int] = None,
                     httponly: bool = True, samesite: Optional[str] = "lax", secure: bool = False) -> str:
    """Render a `Set-Cookie` header value using Starlette's cookie rules."""
    response = Response()
    response.set_cookie(
        key=name,
        value=value,
        max_age=max_age,
        path=path,
        secure=secure,
        httponly=httponly,
        samesite=samesite,  # pyright: ignore[reportArgumentType]
    )
    return response.headers['set-cookie']


class SessionLifecycle:
    def __init__(self, backend: SessionBackendProtocol, cookie_name: str = SESSION_COOKIE,
                 cookie_path: str = "/", httponly: bool = True, samesite: Optional[str] = "lax",
                 secure: bool = False) -> None:
        self.backend = backend
        self.cookie_name = cookie_name
        self.cookie_path = cookie_path
        self.httponly = httponly
        self.samesite = samesite
        self.secure = secure

    def open(self, cookies: Mapping[str, str]) -> RequestSession:
        session = None
        data = cookies.get(self.cookie_name)
        if data:
            session = self.backend.read(data)

        if session is None:
            session = self.backend.create()
            new = True
            logger.debug("Created new session (cookie present=%s)", bool(data))
        else:
            new = False
            logger.debug("Resolved existing session from cookie")

        session = dict(session)
        flash = session.pop(FLASH_KEY, None) or {}
        return RequestSession(session=session, new=new, flash=dict(flash))

    def should_save(self, request_session: RequestSession, response_has_session: bool) -> bool:
        return bool(response_has_session or request_session.new or request_session.flash)

    def finish(self, request_session: RequestSession, response_session: Optional[dict[str, Any]] = None,
               response_has_session: bool = False) -> Optional[str]:
        """Persist the session if needed and return the cookie value to send, if any.

        Raises `SessionTooLargeError` when a cookie backend cannot fit the
        session into a cookie.
        """
        effective = request_session.session
        if response_has_session and response_session is not None:
            effective = response_session
            # a replacement session keeps the id its storage record lives under
            if ID_KEY in request_session.session and ID_KEY not in effective:
                effective = {**effective, ID_KEY: request_session.session[ID_KEY]}

        if self.should_save(request_session, response_has_session):
            self.backend.write(effective)
            logger.debug("Saved session (response session=%s, new=%s, flash=%s)",
                         response_has_session, request_session.new, bool(request_session.flash))

        value = self.backend.cookie_value(request_session.new, effective)
        if value is not None:
            logger.debug("Emitting session cookie '%s'", self.cookie_name)
        return value

    def destroy(self, session: dict[str, Any]) -> None:
        self.backend.destroy(session)
        logger.debug("Destroyed session")

    def set_cookie_header(self, value: str, max_age: Optional[int] = None) -> str:
        return build_set_cookie(self.cookie_name, value, path=self.cookie_path, max_age=max_age,
                                httponly=self.httponly, samesite=self.samesite, secure=self.secure)

    def wrap(self, handler: Handler) -> Handler:
        """Wrap a mapping-style handler with session handling.

        The request mapping may hold already decoded `cookies`, otherwise
        the raw `Cookie` header under ``headers["cookie"]`` is parsed. The
        handler receives a copy annotated with `session`, `new_session` and
        `flash`. A handler returning None means "not handled": nothing is
        saved and None is returned. A returned mapping may carry a
        `session` key to replace the session.
        """
        def wrapped(request: dict) -> Optional[dict]:
            cookies = request.get('cookies')
            if cookies is None:
                headers = request.get('headers') or {}
                cookies = cookie_parser(headers.get('cookie', ''))

            state = self.open(cookies)
            annotated = dict(request)
            annotated['cookies'] = cookies
            annotated['session'] = state.session
            annotated['new_session'] = state.new
            annotated['flash'] = state.flash

            response = handler(annotated)
            if response is None:
                return None

            has_session = response.get('session') is not None
            value = self.finish(state, response.get('session'), has_session)
            if value is None:
                return response

            response = dict(response)
            headers = dict(response.get('headers') or {})
            existing = headers.get('set-cookie', [])
            if isinstance(existing, str):
                existing = [existing]
            headers['set-cookie'] = [*existing, self.set_cookie_header(value)]
            response['headers'] = headers
            return response

        return wrapped
