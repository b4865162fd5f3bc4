"""
Error types and JSON error handlers for the login server.

Handlers raise one of the exceptions below instead of building error
responses inline. ``register_error_handlers`` turns every one of them,
plus any Werkzeug HTTP error and unhandled 500s, into one JSON envelope::

    {"success": false, "message": "..."}

The login page script and the load-test clients both read this
envelope, so one endpoint serves both consumers.
"""

from __future__ import annotations

import logging

from flask import Flask, Response, jsonify
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)


class LoginAppError(Exception):
    """Base class for errors that map to a client-facing JSON response."""

    status_code: int = 400
    message: str = "Bad request"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)
        if message is not None:
            self.message = message


class InvalidInput(LoginAppError):
    """Missing or badly formatted username/password."""

    status_code = 400
    message = "Invalid username or password format"


class DuplicateAccount(LoginAppError):
    """Registration attempted for a username that already exists."""

    status_code = 409
    message = "Username already exists"


class AuthenticationFailure(LoginAppError):
    """Unknown user, wrong password, or a missing/invalid session."""

    status_code = 401
    message = "Invalid username or password"


class CsrfFailure(LoginAppError):
    """State-changing request without a valid CSRF token."""

    status_code = 403
    message = "Invalid or missing CSRF token"


class RateLimited(LoginAppError):
    """Too many login attempts from one client inside the current window."""

    status_code = 429
    message = "Too many login attempts. Please try again later"

    def __init__(self, retry_after: int, message: str | None = None):
        super().__init__(message)
        self.retry_after = max(int(retry_after), 1)


class SessionCapacityError(LoginAppError):
    """The session table is full of live sessions."""

    status_code = 503
    message = "Failed to create session"


def json_error(message: str, status_code: int) -> tuple[Response, int]:
    """Build the standard ``{"success": false, "message": ...}`` response."""
    return jsonify({"success": False, "message": message}), status_code


def register_error_handlers(app: Flask) -> None:
    """Attach JSON error handlers for application and HTTP errors."""

    @app.errorhandler(LoginAppError)
    def handle_login_app_error(error: LoginAppError):
        response, status = json_error(error.message, error.status_code)
        if isinstance(error, RateLimited):
            response.headers["Retry-After"] = str(error.retry_after)
        return response, status

    @app.errorhandler(HTTPException)
    def handle_http_error(error: HTTPException):
        response, status = json_error(error.name, error.code or 500)
        allowed = getattr(error, "valid_methods", None)
        if allowed:
            response.headers["Allow"] = ", ".join(allowed)
        return response, status

    @app.errorhandler(500)
    def internal_error(error: Exception):
        logger.error("Internal server error: %s", error)
        return json_error("Internal server error", 500)
