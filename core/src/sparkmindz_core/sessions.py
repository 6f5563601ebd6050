"""Server-side sessions.

A session is a small record keyed by an opaque identifier. The identifier travels to
the client in a cookie, signed so that forged or truncated values are rejected
before the store is consulted.
"""

from __future__ import annotations

import secrets
import threading
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import UTC, datetime
from typing import Final, Protocol

from itsdangerous import BadSignature, Signer

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    return datetime.now(UTC)


class SessionStoreError(RuntimeError):
    """The backing store could not read, persist or destroy a session."""


@dataclass
class Session:
    session_id: str
    created_at: datetime
    expires_at: datetime
    authenticated: bool = False

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at <= now


def new_session_id() -> str:
    return secrets.token_urlsafe(32)


class SessionStore(Protocol):
    def get(self, session_id: str) -> Session | None: ...

    def save(self, session: Session) -> None: ...

    def destroy(self, session_id: str) -> None: ...

    def touch(self, session_id: str, expires_at: datetime) -> None: ...


class InMemorySessionStore:
    """Process-local store.

    Expired entries read as absent and are dropped lazily. Writes to the same id are
    last-write-wins.
    """

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or utcnow
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def get(self, session_id: str) -> Session | None:
        now = self._clock()
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None
            if session.is_expired(now):
                del self._sessions[session_id]
                return None
            # Callers mutate their copy; changes only land through save().
            return replace(session)

    def save(self, session: Session) -> None:
        with self._lock:
            self._sessions[session.session_id] = replace(session)

    def destroy(self, session_id: str) -> None:
        with self._lock:
            self._sessions.pop(session_id, None)

    def touch(self, session_id: str, expires_at: datetime) -> None:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is not None:
                session.expires_at = expires_at

    def prune(self) -> int:
        """Drop every expired session; returns how many were removed."""

        now = self._clock()
        with self._lock:
            expired = [sid for sid, s in self._sessions.items() if s.is_expired(now)]
            for sid in expired:
                del self._sessions[sid]
        return len(expired)


SIGNER_SALT: Final[str] = "sparkmindz.session"


def _signer(secret: str) -> Signer:
    return Signer(secret, salt=SIGNER_SALT)


def sign_session_id(session_id: str, secret: str) -> str:
    return _signer(secret).sign(session_id).decode("utf-8")


def unsign_session_id(value: str | None, secret: str) -> str | None:
    """Return the session id carried by a cookie value, or None if it does not verify."""

    if not value:
        return None
    try:
        session_id = _signer(secret).unsign(value).decode("utf-8")
    except BadSignature:
        return None
    return session_id or None
