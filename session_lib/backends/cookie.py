"""Stateless sessions carried entirely in a signed cookie."""
from __future__ import annotations
from typing import Any, Optional

from session_lib.signing import CookieSigner


class CookieSessionBackend:
    def __init__(self, signer: CookieSigner) -> None:
        self.signer = signer

    def create(self) -> dict[str, Any]:
        return {}

    def read(self, data: str) -> Optional[dict[str, Any]]:
        return self.signer.verify_cookie(data)

    # The cookie is the storage: it is written on the way out instead.
    def write(self, session: dict[str, Any]) -> None:
        return None

    def destroy(self, session: dict[str, Any]) -> None:
        return None

    def cookie_value(self, is_new: bool, session: dict[str, Any]) -> Optional[str]:
        """Signed serialization of `session`; raises `SessionTooLargeError` on overflow."""
        return self.signer.build_cookie(session).unwrap()
