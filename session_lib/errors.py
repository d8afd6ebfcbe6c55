"""Exception types raised by session_lib."""


class SessionError(Exception):
    """Base class for session errors."""


class SessionTooLargeError(SessionError):
    """Serialized session does not fit into a cookie."""

    def __init__(self, size: int, limit: int) -> None:
        super().__init__(f"Session data exceeds {limit} bytes (got {size})")
        self.size = size
        self.limit = limit


class UnknownBackendError(SessionError, KeyError):
    """No session backend is registered for the requested tag."""

    def __init__(self, tag: str) -> None:
        super().__init__(tag)
        self.tag = tag

    def __str__(self) -> str:
        return f"No session backend registered for tag '{self.tag}'"
