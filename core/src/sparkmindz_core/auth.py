from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Final, Literal

from fastapi import HTTPException, Request
from starlette.responses import Response

from sparkmindz_core.config import CoreConfig
from sparkmindz_core.sessions import (
    Clock,
    Session,
    SessionStore,
    new_session_id,
    sign_session_id,
    unsign_session_id,
    utcnow,
)

logger = logging.getLogger(__name__)

API_PREFIX: Final[str] = "/api/"
LOGIN_PAGE: Final[str] = "/admin"
PROTECTED_PAGE: Final[str] = "/admin-panel"

# Keys under request.state used by the gate.
_STATE_SESSION: Final[str] = "session"
_STATE_ISSUE: Final[str] = "session_issue_cookie"
_STATE_CLEAR: Final[str] = "session_clear_cookie"


class LoginRequired(Exception):
    """A page request reached a protected route without an authenticated session."""

    def __init__(self, location: str = LOGIN_PAGE) -> None:
        super().__init__(location)
        self.location = location


def is_api_path(path: str) -> bool:
    return path == API_PREFIX.rstrip("/") or path.startswith(API_PREFIX)


def credentials_match(attempt: str | None, expected: str | None) -> bool:
    if not expected or attempt is None:
        return False
    return secrets.compare_digest(attempt.encode("utf-8"), expected.encode("utf-8"))


@dataclass(frozen=True)
class CookiePolicy:
    name: str
    max_age: int
    secure: bool
    samesite: Literal["lax", "strict", "none"]
    domain: str | None = None
    path: str = "/"

    @classmethod
    def from_config(cls, config: CoreConfig) -> CookiePolicy:
        production = config.is_production
        return cls(
            name=config.session.cookie_name,
            max_age=config.session.max_age_seconds,
            secure=production,
            samesite="none" if production else "lax",
            domain=config.session.cookie_domain if production else None,
        )

    def set_on(self, response: Response, value: str) -> None:
        response.set_cookie(
            self.name,
            value,
            max_age=self.max_age,
            path=self.path,
            domain=self.domain,
            secure=self.secure,
            httponly=True,
            samesite=self.samesite,
        )

    def clear_on(self, response: Response) -> None:
        response.delete_cookie(
            self.name,
            path=self.path,
            domain=self.domain,
            secure=self.secure,
            httponly=True,
            samesite=self.samesite,
        )


class SessionGate:
    """Decides per request whether the caller holds an authenticated session.

    The session for the current request lives on ``request.state``; :meth:`load` runs
    before the handler and :meth:`commit` after it, so login and logout only have to
    record what changed.
    """

    def __init__(
        self,
        store: SessionStore,
        *,
        admin_password: str | None,
        secret: str,
        cookie: CookiePolicy,
        clock: Clock | None = None,
    ) -> None:
        self.store = store
        self.cookie = cookie
        self._admin_password = admin_password
        self._secret = secret
        self._clock = clock or utcnow
        self._window = timedelta(seconds=cookie.max_age)

    @classmethod
    def from_config(
        cls, config: CoreConfig, store: SessionStore, *, clock: Clock | None = None
    ) -> SessionGate:
        secret = config.auth.session_secret
        if not secret:
            raise ValueError("Session secret not initialized")
        if not config.auth.admin_password:
            logger.warning("No admin password configured; every login attempt will fail")
        return cls(
            store,
            admin_password=config.auth.admin_password,
            secret=secret,
            cookie=CookiePolicy.from_config(config),
            clock=clock,
        )

    def now(self) -> datetime:
        return self._clock()

    def current_session(self, request: Request) -> Session | None:
        return getattr(request.state, _STATE_SESSION, None)

    def load(self, request: Request) -> Session | None:
        """Resolve the cookie to a live session and restart its expiry window."""

        request.state.session_issue_cookie = False
        request.state.session_clear_cookie = False
        request.state.session = None

        session_id = unsign_session_id(request.cookies.get(self.cookie.name), self._secret)
        if session_id is None:
            return None

        session = self.store.get(session_id)
        if session is None:
            return None

        expires_at = self.now() + self._window
        self.store.touch(session.session_id, expires_at)
        session.expires_at = expires_at

        request.state.session = session
        request.state.session_issue_cookie = True
        return session

    def commit(self, request: Request, response: Response) -> None:
        if getattr(request.state, _STATE_CLEAR, False):
            self.cookie.clear_on(response)
            return

        session = self.current_session(request)
        if session is not None and getattr(request.state, _STATE_ISSUE, False):
            self.cookie.set_on(response, sign_session_id(session.session_id, self._secret))

    def login(self, request: Request, attempt: str | None) -> bool:
        if not credentials_match(attempt, self._admin_password):
            logger.info("Rejected admin login from %s", _client_host(request))
            return False

        # A fresh identifier on every login; the pre-login one never becomes trusted.
        previous = self.current_session(request)
        if previous is not None:
            self.store.destroy(previous.session_id)

        now = self.now()
        session = Session(
            session_id=new_session_id(),
            created_at=now,
            expires_at=now + self._window,
            authenticated=True,
        )
        self.store.save(session)

        request.state.session = session
        request.state.session_issue_cookie = True
        request.state.session_clear_cookie = False
        logger.info("Admin session started from %s", _client_host(request))
        return True

    def authenticated_session(self, request: Request) -> Session | None:
        session = self.current_session(request)
        if session is None or not session.authenticated:
            return None
        return session

    def check_auth(self, request: Request) -> bool:
        return self.authenticated_session(request) is not None

    def logout(self, request: Request) -> None:
        """Destroy the current session; raises SessionStoreError if the store fails."""

        session = self.current_session(request)
        if session is not None:
            self.store.destroy(session.session_id)
            logger.info("Admin session ended")

        request.state.session = None
        request.state.session_issue_cookie = False
        request.state.session_clear_cookie = True


def _client_host(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def get_session_gate(request: Request) -> SessionGate:
    gate = getattr(request.app.state, "session_gate", None)
    if gate is None:
        raise HTTPException(status_code=500, detail="Session gate not initialized")
    return gate


async def require_auth(request: Request) -> Session:
    """Gate for protected routes.

    API callers get a 403 they can act on; browsers are sent to the login page.
    """

    gate = get_session_gate(request)
    session = gate.authenticated_session(request)
    if session is not None:
        return session

    if is_api_path(request.url.path):
        raise HTTPException(status_code=403, detail="Authentication required")
    raise LoginRequired()
