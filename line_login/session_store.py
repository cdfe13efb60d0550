"""
Per-user session storage for the pending flow (state, nonce).
The host app owns the session; request.session from Starlette's SessionMiddleware is the default backend.
"""
from typing import MutableMapping

from starlette.requests import Request

STATE_KEY = "line_login_state"
NONCE_KEY = "line_login_nonce"


class SessionStore:
    """Key-value store scoped to the current user session."""

    def get(self, key: str) -> str | None:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class MappingSessionStore(SessionStore):
    """Adapts any mutable mapping (e.g. request.session)."""

    def __init__(self, data: MutableMapping[str, str]):
        self._data = data

    def get(self, key: str) -> str | None:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


def request_session_store(request: Request) -> SessionStore:
    """Default factory. Requires SessionMiddleware on the app."""
    return MappingSessionStore(request.session)
