"""Server-side sessions kept in a key-value store.

The cookie only carries the session id; the session itself is saved in
a `StorageBackend` under the `sessions` namespace.
"""
from __future__ import annotations
import logging
import re
import uuid
from typing import Any, Optional

from session_lib.storage import StorageBackend

logger = logging.getLogger(__name__)

# Ids from create() fit this shape; anything else is never looked up.
SESSION_ID_PATTERN = re.compile(r"[A-Za-z0-9_-]{1,128}")


class StoreSessionBackend:
    DEFAULT_NS = 'sessions'

    def __init__(self, storage: StorageBackend, namespace: str = DEFAULT_NS) -> None:
        self._storage = storage
        self.namespace = namespace

    def create(self) -> dict[str, Any]:
        return {'id': uuid.uuid4().hex}

    def read(self, data: str) -> Optional[dict[str, Any]]:
        if not SESSION_ID_PATTERN.fullmatch(data):
            logger.debug('Ignoring malformed session id')
            return None
        try:
            session = self._storage.load(self.namespace, data)
        except KeyError:
            logger.debug('No stored session for presented id')
            return None
        except (OSError, ValueError) as e:
            logger.warning('Session lookup failed, starting a new session: %s', e)
            return None
        return session if isinstance(session, dict) else None

    def write(self, session: dict[str, Any]) -> None:
        self._storage.save(self.namespace, session['id'], session)

    def destroy(self, session: dict[str, Any]) -> None:
        sid = session.get('id')
        if not sid:
            return
        try:
            self._storage.delete(self.namespace, sid)
        except KeyError:
            # Never persisted, nothing to remove
            pass

    def cookie_value(self, is_new: bool, session: dict[str, Any]) -> Optional[str]:
        # An existing client already holds the id; only new sessions need the cookie.
        if is_new:
            return session['id']
        return None
