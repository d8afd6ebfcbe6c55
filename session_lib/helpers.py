"""Helpers for handlers that change the session.

Each helper builds a response fragment such as ``{"session": {...}}``
and performs no I/O. Mapping-style handlers (see
`SessionLifecycle.wrap`) merge the fragment into the response they
return; ASGI handlers hand it to `apply_session`:

    @app.post('/login')
    async def login(request: Request):
        apply_session(request, session_assoc(user='alice')(request))
        return {'ok': True}
"""
from __future__ import annotations
from typing import Any, Callable, Mapping

from .lifecycle import FLASH_KEY

RESPONSE_SESSION_KEY = "session.response"
DESTROY_KEY = "destroy_session"


def _pairs(keyvals: tuple, kwargs: Mapping[str, Any]) -> dict[str, Any]:
    if len(keyvals) % 2:
        raise ValueError("Expected an even number of key/value arguments")
    out = dict(zip(keyvals[::2], keyvals[1::2]))
    out.update(kwargs)
    return out


def set_session(session: dict[str, Any]) -> dict[str, Any]:
    """Return a response fragment with the session set."""
    return {'session': session}


def alter_session(func: Callable[..., dict[str, Any]], *args: Any) -> Callable[[Any], dict[str, Any]]:
    """Use a function to alter the session.

    Returns a function of the request; `request["session"]` works for both
    plain request mappings and Starlette requests.
    """
    def _alter(request: Any) -> dict[str, Any]:
        return set_session(func(request['session'], *args))

    return _alter


def _assoc(session: Mapping[str, Any], values: Mapping[str, Any]) -> dict[str, Any]:
    return {**session, **values}


def _dissoc(session: Mapping[str, Any], *keys: str) -> dict[str, Any]:
    return {k: v for k, v in session.items() if k not in keys}


def _merge_flash(session: Mapping[str, Any], flash: Mapping[str, Any]) -> dict[str, Any]:
    return {**session, FLASH_KEY: {**(session.get(FLASH_KEY) or {}), **flash}}


def session_assoc(*keyvals: Any, **kwargs: Any) -> Callable[[Any], dict[str, Any]]:
    """Associate key/value pairs with the session."""
    return alter_session(_assoc, _pairs(keyvals, kwargs))


def session_dissoc(*keys: str) -> Callable[[Any], dict[str, Any]]:
    """Remove keys from the session."""
    return alter_session(_dissoc, *keys)


def flash_assoc(*keyvals: Any, **kwargs: Any) -> Callable[[Any], dict[str, Any]]:
    """Set the flash delivered with the next request."""
    return alter_session(_merge_flash, _pairs(keyvals, kwargs))


def destroy_session() -> dict[str, Any]:
    """Return a fragment asking the middleware to destroy the session and expire the cookie."""
    return {DESTROY_KEY: True}


def apply_session(request: Any, fragment: Mapping[str, Any]) -> None:
    """Record a session fragment for the ASGI response of `request`."""
    target = request.scope.get(RESPONSE_SESSION_KEY)
    if target is None:
        raise RuntimeError("SessionMiddleware must be installed to apply session changes")
    target.update(fragment)
