"""
Request authentication helpers.

Resolves the caller's session from either an ``Authorization: Bearer``
header (API clients) or the ``auth_token`` entry of Flask's signed
session cookie (the browser), and provides two decorators:

- ``login_required`` for HTML views: anonymous visitors are redirected
  to the login page.
- ``session_required`` for JSON endpoints: anonymous callers get a 401.

On success both stash the session on ``g.auth_session`` and the
username on ``g.username``.
"""

from __future__ import annotations

from functools import wraps

from flask import g, redirect, request, session, url_for

from .errors import AuthenticationFailure
from .sessions import Session, current_session_store

SESSION_TOKEN_KEY = "auth_token"


def _extract_bearer_token() -> str | None:
    """
    Extract the Bearer token from the Authorization header.

    Returns:
        The raw token string, or ``None`` if the header is absent,
        malformed, or empty.
    """
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return None
    token = auth_header[7:].strip()
    return token or None


def has_credentials() -> bool:
    """True when the request carries a Bearer header or a session cookie token."""
    return _extract_bearer_token() is not None or bool(session.get(SESSION_TOKEN_KEY))


def authenticated_by_cookie() -> bool:
    """True when the resolved session came from the cookie, not a header."""
    return getattr(g, "auth_via", None) == "cookie"


def current_session() -> Session | None:
    """
    Resolve the live session for this request, if any.

    A header token takes precedence over the cookie. A stale cookie
    token is removed from the cookie so the browser stops sending it.
    """
    store = current_session_store()

    bearer = _extract_bearer_token()
    if bearer is not None:
        g.auth_via = "bearer"
        return store.resolve(bearer)

    token = session.get(SESSION_TOKEN_KEY)
    if not token:
        return None
    g.auth_via = "cookie"
    resolved = store.resolve(token)
    if resolved is None:
        session.pop(SESSION_TOKEN_KEY, None)
    return resolved


def _remember(auth_session: Session) -> None:
    g.auth_session = auth_session
    g.username = auth_session.username


def login_required(view_func):
    """
    Require a live session for an HTML view.

    Anonymous browsers are sent to the login page. A request that
    presented a Bearer token which failed to resolve gets a JSON 401
    instead, since a redirect means nothing to an API client.
    """

    @wraps(view_func)
    def wrapper(*args, **kwargs):
        auth_session = current_session()
        if auth_session is None:
            if _extract_bearer_token() is not None:
                raise AuthenticationFailure("Invalid or expired session")
            return redirect(url_for("views.index"))

        _remember(auth_session)
        return view_func(*args, **kwargs)

    return wrapper


def session_required(view_func):
    """Require a live session for a JSON endpoint (401 otherwise)."""

    @wraps(view_func)
    def wrapper(*args, **kwargs):
        if not has_credentials():
            raise AuthenticationFailure("No authorization token provided")

        auth_session = current_session()
        if auth_session is None:
            raise AuthenticationFailure("Invalid or expired session")

        _remember(auth_session)
        return view_func(*args, **kwargs)

    return wrapper
