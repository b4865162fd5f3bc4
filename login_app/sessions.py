"""
Server-side sessions, signed session tokens, and CSRF tokens.

A successful login creates a :class:`Session` record in process memory
and hands the client a signed token that names it. The token is an
HS256 JSON Web Token carrying four claims:

    - ``sid``      -- id of the server-side session record.
    - ``username`` -- account the session belongs to.
    - ``iat``      -- issued-at timestamp (UTC epoch seconds).
    - ``exp``      -- absolute expiry (UTC epoch seconds).

A token only authenticates while *both* hold: the signature and expiry
verify, and the ``sid`` still names a live session. Logging out deletes
the record, which revokes the token immediately even though its ``exp``
is still in the future. Sessions that sit idle longer than the idle
timeout are discarded on the next lookup or cleanup pass.

CSRF tokens are bound to one session, valid once, and expire after a
TTL. They are kept on the session record itself, so destroying a
session drops its CSRF tokens with it.
"""

from __future__ import annotations

import hmac
import logging
import secrets
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

import jwt
from flask import Flask, current_app

from .errors import SessionCapacityError

logger = logging.getLogger(__name__)

EXTENSION_KEY = "login_session_store"
TOKEN_ALGORITHM = "HS256"
REQUIRED_TOKEN_CLAIMS = ["sid", "username", "iat", "exp"]

# Outstanding CSRF tokens kept per session; older ones are dropped first.
MAX_CSRF_TOKENS_PER_SESSION = 16


@dataclass
class Session:
    """An authenticated session for one account."""

    sid: str
    username: str
    created_at: float
    last_accessed: float
    csrf_tokens: dict[str, float] = field(default_factory=dict, repr=False)


class SessionStore:
    """
    Thread-safe table of live sessions.

    Args:
        secret_key: Key used to sign and verify session tokens.
        idle_timeout: Seconds of inactivity after which a session dies.
        max_age_hours: Absolute token lifetime, enforced through ``exp``.
        max_active: Upper bound on live sessions.
        clock_skew: Leeway in seconds when checking token timestamps.
        csrf_ttl: Seconds a CSRF token stays valid.
        clock: Time source for idle/CSRF bookkeeping, replaceable in tests.
    """

    def __init__(
        self,
        secret_key: str = "",
        idle_timeout: float = 3600,
        max_age_hours: int = 24,
        max_active: int = 10000,
        clock_skew: int = 30,
        csrf_ttl: float = 3600,
        clock: Callable[[], float] = time.time,
    ):
        self.secret_key = secret_key
        self.idle_timeout = idle_timeout
        self.max_age_hours = max_age_hours
        self.max_active = max_active
        self.clock_skew = clock_skew
        self.csrf_ttl = csrf_ttl
        self._clock = clock
        self._sessions: dict[str, Session] = {}
        self._lock = threading.Lock()

    def init_app(self, app: Flask) -> None:
        """Load session settings from *app* config and register on the app."""
        self.secret_key = app.config["SECRET_KEY"]
        self.idle_timeout = int(app.config["SESSION_IDLE_TIMEOUT_SECONDS"])
        self.max_age_hours = int(app.config["SESSION_MAX_AGE_HOURS"])
        self.max_active = int(app.config["SESSION_MAX_ACTIVE"])
        self.clock_skew = int(app.config["SESSION_TOKEN_CLOCK_SKEW_SECONDS"])
        self.csrf_ttl = int(app.config["CSRF_TOKEN_TTL_SECONDS"])
        app.extensions[EXTENSION_KEY] = self

    # -----------------------------------------------------------------
    # Sessions
    # -----------------------------------------------------------------

    def create(self, username: str) -> tuple[Session, str]:
        """
        Open a session for *username* and return it with its signed token.

        Raises:
            SessionCapacityError: If ``max_active`` live sessions exist
                even after expired ones have been purged.
        """
        now = self._clock()
        with self._lock:
            if len(self._sessions) >= self.max_active:
                self._purge_expired(now)
                if len(self._sessions) >= self.max_active:
                    logger.error("Session table full (%d live sessions)", len(self._sessions))
                    raise SessionCapacityError()

            sid = secrets.token_urlsafe(24)
            session = Session(sid=sid, username=username, created_at=now, last_accessed=now)
            self._sessions[sid] = session

        return session, self._encode_token(session)

    def resolve(self, token: str | None) -> Session | None:
        """
        Return the live session named by *token*, refreshing its idle timer.

        Returns ``None`` for a missing, malformed, tampered, or expired
        token, and for tokens whose session was destroyed or went idle.
        """
        if not token:
            return None
        payload = self._decode_token(token)
        if payload is None:
            return None

        now = self._clock()
        with self._lock:
            session = self._sessions.get(payload["sid"])
            if session is None:
                return None
            if now - session.last_accessed > self.idle_timeout:
                del self._sessions[session.sid]
                return None
            if not hmac.compare_digest(session.username, payload["username"]):
                return None
            session.last_accessed = now
            return session

    def destroy(self, sid: str) -> bool:
        """Delete a session; returns ``False`` if it did not exist."""
        with self._lock:
            return self._sessions.pop(sid, None) is not None

    def cleanup_expired(self) -> int:
        """Drop idle sessions and return how many were removed."""
        now = self._clock()
        with self._lock:
            return self._purge_expired(now)

    def reset(self) -> None:
        """Forget every session."""
        with self._lock:
            self._sessions.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    # -----------------------------------------------------------------
    # CSRF
    # -----------------------------------------------------------------

    def issue_csrf(self, sid: str) -> str | None:
        """Mint a single-use CSRF token for session *sid*."""
        now = self._clock()
        with self._lock:
            session = self._sessions.get(sid)
            if session is None:
                return None
            self._purge_csrf(session, now)
            while len(session.csrf_tokens) >= MAX_CSRF_TOKENS_PER_SESSION:
                oldest = min(session.csrf_tokens, key=session.csrf_tokens.__getitem__)
                del session.csrf_tokens[oldest]
            token = secrets.token_urlsafe(32)
            session.csrf_tokens[token] = now
            return token

    def consume_csrf(self, sid: str, token: str | None) -> bool:
        """
        Validate and burn a CSRF token for session *sid*.

        Every outstanding token is compared in constant time so the
        check does not leak which prefix matched. Comparison is on UTF-8
        bytes; ``compare_digest`` rejects non-ASCII ``str`` operands.
        """
        if not token:
            return False
        presented = token.encode("utf-8")
        now = self._clock()
        with self._lock:
            session = self._sessions.get(sid)
            if session is None:
                return False
            self._purge_csrf(session, now)
            match = None
            for candidate in session.csrf_tokens:
                if hmac.compare_digest(candidate.encode("ascii"), presented):
                    match = candidate
            if match is None:
                return False
            del session.csrf_tokens[match]
            return True

    # -----------------------------------------------------------------
    # Internals
    # -----------------------------------------------------------------

    def _encode_token(self, session: Session) -> str:
        # Wall-clock UTC, independent of the injectable bookkeeping clock.
        now = datetime.now(timezone.utc)
        expires_at = now + timedelta(hours=int(self.max_age_hours))
        payload: dict[str, Any] = {
            "sid": session.sid,
            "username": session.username,
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
        }
        return jwt.encode(payload, self.secret_key, algorithm=TOKEN_ALGORITHM)

    def _decode_token(self, token: str) -> dict[str, Any] | None:
        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[TOKEN_ALGORITHM],
                options={"require": REQUIRED_TOKEN_CLAIMS},
                leeway=self.clock_skew,
            )
        except jwt.InvalidTokenError:
            return None

        if not isinstance(payload.get("sid"), str) or not payload["sid"]:
            return None
        if not isinstance(payload.get("username"), str) or not payload["username"]:
            return None
        return payload

    def _purge_expired(self, now: float) -> int:
        expired = [
            sid
            for sid, session in self._sessions.items()
            if now - session.last_accessed > self.idle_timeout
        ]
        for sid in expired:
            del self._sessions[sid]
        return len(expired)

    def _purge_csrf(self, session: Session, now: float) -> None:
        stale = [
            token
            for token, issued_at in session.csrf_tokens.items()
            if now - issued_at > self.csrf_ttl
        ]
        for token in stale:
            del session.csrf_tokens[token]


def current_session_store() -> SessionStore:
    """Return the session store registered on the active application."""
    return current_app.extensions[EXTENSION_KEY]
