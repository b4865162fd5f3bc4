"""
Flask application factory for the login server.

Builds the application that serves the login/registration page, the
JSON auth endpoints, and the post-login dashboard. The factory pattern
lets the test suites stand up isolated instances (including live
servers with their own database) from the same code path the WSGI
entry point uses.

Key Concepts Demonstrated:
- Application factory pattern (create_app)
- Flask extension initialisation (SQLAlchemy, rate limiter, sessions)
- Blueprint-based route registration
- Per-request access logging and cache headers
"""

from __future__ import annotations

import logging
import os
import time
from typing import Any

from flask import Flask, Response, g, request
from flask_sqlalchemy import SQLAlchemy
from werkzeug.middleware.proxy_fix import ProxyFix

from config import get_config

# Shared SQLAlchemy instance -- bound to a concrete app inside create_app()
db = SQLAlchemy()

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)


def _register_request_hooks(app: Flask) -> None:
    """Log every request and mark every response as uncacheable."""

    @app.before_request
    def _start_timer() -> None:
        g.request_started = time.perf_counter()

    @app.after_request
    def _finish_request(response: Response) -> Response:
        response.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
        response.headers["Pragma"] = "no-cache"
        response.headers["Expires"] = "0"

        started = g.pop("request_started", None)
        elapsed_ms = (time.perf_counter() - started) * 1000 if started else 0.0
        logger.info(
            "%s %s -> %s (%.1fms)",
            request.method,
            request.path,
            response.status_code,
            elapsed_ms,
        )
        return response


def create_app(
    config_name: str | None = None,
    overrides: dict[str, Any] | None = None,
) -> Flask:
    """
    Create and configure the login server application.

    Args:
        config_name: Configuration environment name.
                     If None, uses FLASK_ENV environment variable.
        overrides: Extra config values applied after the config class,
                   e.g. a dedicated database URI for a live test server.

    Returns:
        Configured Flask application instance.
    """
    app = Flask(__name__, instance_relative_config=True)

    # Load configuration
    config_class = get_config(config_name)
    app.config.from_object(config_class)
    if overrides:
        app.config.update(overrides)

    logger.info("Creating login app with config: %s", config_class.__name__)

    # Ensure the instance folder exists for the SQLite database file
    os.makedirs(app.instance_path, exist_ok=True)

    proxy_hops = int(app.config.get("PROXY_FIX_X_FOR", 0))
    if proxy_hops > 0:
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=proxy_hops)

    # Initialize extensions
    from .rate_limit import RateLimiter
    from .sessions import SessionStore

    db.init_app(app)
    RateLimiter().init_app(app)
    SessionStore().init_app(app)

    from .errors import register_error_handlers

    register_error_handlers(app)
    _register_request_hooks(app)

    # Register blueprints
    from .routes.api import api_bp
    from .routes.views import views_bp

    app.register_blueprint(api_bp)
    app.register_blueprint(views_bp)

    # Create database tables
    with app.app_context():
        db.create_all()
        logger.info("Database tables created")

    return app
