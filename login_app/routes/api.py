"""
Auth endpoints for the login server.

All routes accept either a form body
(``application/x-www-form-urlencoded``, as sent by the page and the load
tests) or a JSON body, and always answer with JSON in the envelope
``{"success": bool, "message": str, ...}``. Failures are raised as
``LoginAppError`` subclasses and rendered by the handlers in
``login_app.errors``.

Endpoints:
    GET  /health    -- Liveness probe.
    POST /register  -- Create an account.
    POST /login     -- Throttle, verify credentials, open a session.
    POST /logout    -- Close the caller's session.
"""

from __future__ import annotations

import logging
import os

from flask import Blueprint, Response, g, jsonify, redirect, request, session, url_for

from ..auth import SESSION_TOKEN_KEY, authenticated_by_cookie, session_required
from ..errors import AuthenticationFailure, CsrfFailure, InvalidInput, RateLimited
from ..rate_limit import current_rate_limiter
from ..sessions import current_session_store
from ..store import credential_store
from ..validation import validate_password, validate_username

logger = logging.getLogger(__name__)

api_bp = Blueprint("api", __name__)

MISSING_CREDENTIALS_MESSAGE = "Missing username or password"
CSRF_HEADER = "X-CSRF-Token"


# -----------------------------------------------------------------------------
# Helper Functions
# -----------------------------------------------------------------------------

def _read_credentials() -> tuple[str, str]:
    """
    Pull ``username`` and ``password`` out of a form or JSON body.

    Raises:
        InvalidInput: If either field is absent, not a string, or empty.
    """
    if request.is_json:
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            data = {}
    else:
        data = request.form

    username = data.get("username")
    password = data.get("password")
    if not isinstance(username, str) or not username:
        raise InvalidInput(MISSING_CREDENTIALS_MESSAGE)
    if not isinstance(password, str) or not password:
        raise InvalidInput(MISSING_CREDENTIALS_MESSAGE)
    return username, password


def _client_key() -> str:
    """Identity used for rate limiting: the (proxy-corrected) client address."""
    return request.remote_addr or "unknown"


def _prefers_html() -> bool:
    """True for a plain browser form post, which expects a page, not JSON."""
    best = request.accept_mimetypes.best_match(["application/json", "text/html"])
    return best == "text/html"


def _drop_previous_session() -> None:
    """Destroy whatever session the cookie currently names."""
    store = current_session_store()
    previous = store.resolve(session.pop(SESSION_TOKEN_KEY, None))
    if previous is not None:
        store.destroy(previous.sid)


# -----------------------------------------------------------------------------
# API Endpoints
# -----------------------------------------------------------------------------

@api_bp.route("/health", methods=["GET"])
def health_check() -> tuple[Response, int]:
    """Health check endpoint for deployment verification."""
    return jsonify({
        "status": "healthy",
        "service": "login",
        "environment": os.getenv("ENVIRONMENT", "unknown"),
    }), 200


@api_bp.route("/register", methods=["POST"])
def register() -> tuple[Response, int]:
    """
    Register a new account.

    Form or JSON fields:
        username: 1-64 letters, digits, or underscores (required)
        password: 1-128 characters (required)

    Returns:
        201 with the created account on success.
        400 if a field is missing or badly formatted.
        409 if the username is already taken.
    """
    username, password = _read_credentials()

    is_valid, error = validate_username(username)
    if not is_valid:
        logger.warning("Registration rejected: invalid username format")
        raise InvalidInput(error)

    is_valid, error = validate_password(password)
    if not is_valid:
        logger.warning("Registration rejected: invalid password format")
        raise InvalidInput(error)

    account = credential_store.put(username, password)

    logger.info("Registered account %s", account.username)
    return jsonify({
        "success": True,
        "message": "User registered successfully",
        "user": account.to_dict(),
    }), 201


@api_bp.route("/login", methods=["POST"])
def login():
    """
    Authenticate a user and open a session.

    The rate limiter is consulted before anything else so a throttled
    client never reaches the password check. The same message is used
    for unknown users and wrong passwords.

    Returns:
        200 JSON with ``redirect``, ``token`` and ``csrf_token``, or a
            303 redirect to ``/dashboard`` for a plain browser form post.
        400 if a field is missing or badly formatted.
        401 if the credentials do not match.
        429 if the client exceeded its login attempts for this window.
    """
    limiter = current_rate_limiter()
    client_key = _client_key()
    if not limiter.check(client_key):
        logger.warning("Login throttled for %s", client_key)
        raise RateLimited(retry_after=limiter.retry_after(client_key))

    username, password = _read_credentials()

    is_valid, _ = validate_username(username)
    if is_valid:
        is_valid, _ = validate_password(password)
    if not is_valid:
        raise InvalidInput("Invalid username or password format")

    account = credential_store.verify(username, password)
    if account is None:
        logger.warning("Failed login for %s from %s", username, client_key)
        raise AuthenticationFailure("Invalid username or password")

    _drop_previous_session()
    store = current_session_store()
    auth_session, token = store.create(account.username)
    csrf_token = store.issue_csrf(auth_session.sid)
    session[SESSION_TOKEN_KEY] = token

    logger.info("Login successful for %s", account.username)
    dashboard_url = url_for("views.dashboard")

    if _prefers_html():
        return redirect(dashboard_url, code=303)

    return jsonify({
        "success": True,
        "message": "Login successful",
        "redirect": dashboard_url,
        "token": token,
        "csrf_token": csrf_token,
    }), 200


@api_bp.route("/logout", methods=["POST"])
@session_required
def logout() -> tuple[Response, int]:
    """
    Close the caller's session.

    Requests authenticated by the session cookie must also present a
    CSRF token (``X-CSRF-Token`` header or ``csrf_token`` form field).
    Bearer-token callers are exempt, since a browser never attaches
    that header on its own.

    Returns:
        200 on success, 401 without a live session, 403 on a bad CSRF token.
    """
    store = current_session_store()
    auth_session = g.auth_session

    if authenticated_by_cookie():
        csrf_token = request.headers.get(CSRF_HEADER) or request.form.get("csrf_token")
        if not store.consume_csrf(auth_session.sid, csrf_token):
            logger.warning("Logout rejected for %s: bad CSRF token", auth_session.username)
            raise CsrfFailure()

    store.destroy(auth_session.sid)
    session.pop(SESSION_TOKEN_KEY, None)

    logger.info("Logged out %s", auth_session.username)
    return jsonify({"success": True, "message": "Logged out successfully"}), 200
