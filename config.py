"""
Application configuration module.

This module defines configuration classes for different environments
(development, testing, production). Configuration values are loaded
from environment variables with sensible defaults, so a container
orchestrator can inject secrets and limits at deploy time without
touching application code.

Key Concepts Demonstrated:
- Inheritance-based configuration hierarchy
- Environment variable overrides with sensible defaults
- Separate database for testing to protect development data
- Session, rate-limit, and TLS settings in one place
"""

from __future__ import annotations

import os
from pathlib import Path

# Base directory of the project
BASE_DIR = Path(__file__).resolve().parent


def _env_int(name: str, default: int) -> int:
    """Read an integer setting from the environment."""
    return int(os.environ.get(name, str(default)))


def _env_bool(name: str, default: bool) -> bool:
    """Read a boolean setting from the environment ("true"/"false")."""
    fallback = "true" if default else "false"
    return os.environ.get(name, fallback).strip().lower() == "true"


class Config:
    """
    Base configuration shared by all environments.

    Subclasses should override only the values that need to change.
    """

    SECRET_KEY: str = os.environ.get("SECRET_KEY", "login-dev-secret-change-in-production")
    SQLALCHEMY_TRACK_MODIFICATIONS: bool = False

    # Default database location
    SQLALCHEMY_DATABASE_URI: str = os.environ.get(
        "DATABASE_URL",
        f"sqlite:///{BASE_DIR / 'instance' / 'login.db'}"
    )

    # Login throttling: attempts allowed per client inside one window
    RATE_LIMIT_MAX_ATTEMPTS: int = _env_int("RATE_LIMIT_MAX_ATTEMPTS", 5)
    RATE_LIMIT_WINDOW_SECONDS: int = _env_int("RATE_LIMIT_WINDOW_SECONDS", 60)
    RATE_LIMIT_MAX_ENTRIES: int = _env_int("RATE_LIMIT_MAX_ENTRIES", 10000)

    # Server-side sessions
    SESSION_IDLE_TIMEOUT_SECONDS: int = _env_int("SESSION_IDLE_TIMEOUT_SECONDS", 3600)
    SESSION_MAX_AGE_HOURS: int = _env_int("SESSION_MAX_AGE_HOURS", 24)
    SESSION_MAX_ACTIVE: int = _env_int("SESSION_MAX_ACTIVE", 10000)
    SESSION_TOKEN_CLOCK_SKEW_SECONDS: int = _env_int("SESSION_TOKEN_CLOCK_SKEW_SECONDS", 30)
    CSRF_TOKEN_TTL_SECONDS: int = _env_int("CSRF_TOKEN_TTL_SECONDS", 3600)

    # Flask session cookie hardening
    SESSION_COOKIE_HTTPONLY: bool = True
    SESSION_COOKIE_SAMESITE: str = os.environ.get("SESSION_COOKIE_SAMESITE", "Lax")
    SESSION_COOKIE_SECURE: bool = _env_bool("SESSION_COOKIE_SECURE", False)

    # Largest request body accepted; credentials never come close
    MAX_CONTENT_LENGTH: int = _env_int("MAX_CONTENT_LENGTH", 16 * 1024)

    # Number of trusted proxies in front of the app (0 = use the socket address)
    PROXY_FIX_X_FOR: int = _env_int("PROXY_FIX_X_FOR", 0)

    # Built-in server settings (wsgi.py)
    SERVER_HOST: str = os.environ.get("SERVER_HOST", "0.0.0.0")
    SERVER_PORT: int = _env_int("SERVER_PORT", 8080)
    TLS_CERT_PATH: str = os.environ.get("TLS_CERT_PATH", str(BASE_DIR / "certs" / "cert.pem"))
    TLS_KEY_PATH: str = os.environ.get("TLS_KEY_PATH", str(BASE_DIR / "certs" / "key.pem"))


class DevelopmentConfig(Config):
    """Development environment configuration."""

    DEBUG: bool = True
    TESTING: bool = False


class TestingConfig(Config):
    """
    Testing environment configuration.

    Uses a separate SQLite file so test runs never touch development
    data. ``check_same_thread=False`` is needed because the live-server
    fixtures and the concurrency tests hit the database from worker
    threads.
    """

    DEBUG: bool = True
    TESTING: bool = True

    SQLALCHEMY_DATABASE_URI: str = os.environ.get(
        "TEST_DATABASE_URL",
        f"sqlite:///{BASE_DIR / 'instance' / 'test_login.db'}?check_same_thread=False"
    )

    # SQLAlchemy engine options for thread safety
    SQLALCHEMY_ENGINE_OPTIONS: dict = {
        "pool_pre_ping": True,
    }

    SESSION_MAX_AGE_HOURS: int = _env_int("TEST_SESSION_MAX_AGE_HOURS", 1)


class ProductionConfig(Config):
    """
    Production environment configuration.

    All secrets must be supplied through environment variables; the
    defaults in ``Config`` are insecure on purpose.
    """

    DEBUG: bool = False
    TESTING: bool = False
    SESSION_COOKIE_SECURE: bool = _env_bool("SESSION_COOKIE_SECURE", True)


# Configuration mapping for easy access
config = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
    "default": DevelopmentConfig,
}


def get_config(env: str | None = None) -> type[Config]:
    """
    Get the configuration class for the specified environment.

    Args:
        env: Environment name (development, testing, production).
             If None, uses FLASK_ENV environment variable.

    Returns:
        Configuration class for the specified environment.
    """
    if env is None:
        env = os.environ.get("FLASK_ENV", "development")
    return config.get(env, config["default"])
