from typing import Protocol, Any, Optional, runtime_checkable


@runtime_checkable
class SessionBackendProtocol(Protocol):
    """Operations every session backend provides.

    The lifecycle only talks to a backend through this surface, so new
    storage strategies can be registered without touching it:

    - `create` returns a fresh session and must not touch storage.
    - `read` returns the session for the raw cookie value, or None when
      the cookie does not resolve to a session. It must not raise for bad
      client input.
    - `write` / `destroy` persist or remove the session (no-ops where the
      cookie itself is the storage).
    - `cookie_value` returns the value for the session cookie, or None to
      leave the client's cookie untouched.
    """

    def create(self) -> dict[str, Any]: ...

    def read(self, data: str) -> Optional[dict[str, Any]]: ...

    def write(self, session: dict[str, Any]) -> None: ...

    def destroy(self, session: dict[str, Any]) -> None: ...

    def cookie_value(self, is_new: bool, session: dict[str, Any]) -> Optional[str]: ...
