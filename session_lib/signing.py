"""Signed cookie serialization for stateless sessions.

A cookie session is stored entirely client side as

    <payload>--<digest>

where `payload` is the session as compact JSON encoded with base64
(``.`` and ``_`` as the two extra characters, no padding) and `digest`
is the hex HMAC-SHA256 of the payload. Neither part can contain ``-``,
so the first ``--`` always marks the start of the digest.

Only integrity is provided. Anyone holding the cookie can decode the
payload, so do not put secrets in a cookie session.
"""
from __future__ import annotations
import base64
import binascii
import json
import logging
from dataclasses import dataclass
from typing import Any, Optional

from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import hashes, hmac

from .errors import SessionTooLargeError

logger = logging.getLogger(__name__)

# Practical ceiling for a single cookie value
MAX_COOKIE_SIZE = 4000
SEPARATOR = "--"
# Cookie-safe replacements for "+" and "/"; must never include "-"
ALTCHARS = b"._"


@dataclass(frozen=True)
class CookieResult:
    """Outcome of `CookieSigner.build_cookie`.

    Holds either the cookie `value` or the `error` explaining why no value
    could be produced.
    """

    value: Optional[str] = None
    error: Optional[SessionTooLargeError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> str:
        if self.error is not None:
            raise self.error
        return self.value  # type: ignore[return-value]


class CookieSigner:
    def __init__(self, secret_key: bytes, max_size: int = MAX_COOKIE_SIZE, separator: str = SEPARATOR) -> None:
        if not secret_key:
            raise ValueError("CookieSigner requires a non-empty secret key")
        self._key = secret_key
        self.max_size = max_size
        self.separator = separator

    def _mac(self) -> hmac.HMAC:
        return hmac.HMAC(self._key, hashes.SHA256())

    def sign(self, payload: str) -> str:
        """Return the hex HMAC-SHA256 digest of `payload`."""
        h = self._mac()
        h.update(payload.encode("utf-8"))
        return h.finalize().hex()

    def marshal(self, session: dict[str, Any]) -> str:
        raw = json.dumps(session, sort_keys=True, separators=(",", ":")).encode("utf-8")
        return base64.b64encode(raw, altchars=ALTCHARS).rstrip(b"=").decode("ascii")

    def unmarshal(self, serialized: str) -> dict[str, Any]:
        padded = serialized + "=" * (-len(serialized) % 4)
        try:
            raw = base64.b64decode(padded.encode("ascii"), altchars=ALTCHARS, validate=True)
            value = json.loads(raw.decode("utf-8"))
        except (binascii.Error, UnicodeError, ValueError) as e:
            raise ValueError(f"Undecodable session payload: {e}") from e
        if not isinstance(value, dict):
            raise ValueError("Session payload is not a mapping")
        return value

    def build_cookie(self, session: dict[str, Any]) -> CookieResult:
        serialized = self.marshal(session)
        if len(serialized) > self.max_size:
            logger.warning("Session payload of %d bytes exceeds cookie limit of %d", len(serialized), self.max_size)
            return CookieResult(error=SessionTooLargeError(len(serialized), self.max_size))
        return CookieResult(value=f"{serialized}{self.separator}{self.sign(serialized)}")

    def verify_cookie(self, cookie: str) -> Optional[dict[str, Any]]:
        """Return the session carried by `cookie`, or None if it does not verify."""
        serialized, sep, received = cookie.partition(self.separator)
        if not sep or not serialized or not received:
            logger.debug("Rejecting session cookie without signature")
            return None
        try:
            digest = bytes.fromhex(received)
        except ValueError:
            digest = None
        # fromhex accepts upper case and spaces; only the canonical form is valid
        if digest is None or digest.hex() != received:
            logger.debug("Rejecting session cookie with malformed signature")
            return None

        h = self._mac()
        h.update(serialized.encode("utf-8"))
        try:
            h.verify(digest)
        except InvalidSignature:
            logger.info("Rejecting session cookie with invalid signature")
            return None

        try:
            return self.unmarshal(serialized)
        except ValueError:
            logger.info("Rejecting signed session cookie with undecodable payload")
            return None
