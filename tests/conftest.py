"""
Shared pytest fixtures for the login server test suite.

This module contains fixtures that are shared across all test modules.
Fixtures follow the Arrange-Act-Assert (AAA) pattern and ensure
test isolation by providing a fresh database, an empty rate-limit
table, and an empty session table for each test.

Key Concepts Demonstrated:
- Fixture scopes (function, session)
- Fixture dependencies
- Test data factories
- Database setup/teardown
- Resetting in-process shared state between tests
"""

import os
from collections.abc import Callable

import pytest
from faker import Faker

# Set testing environment before importing app
os.environ["FLASK_ENV"] = "testing"

from login_app import create_app, db
from login_app.models import Account
from login_app.rate_limit import EXTENSION_KEY as RATE_LIMITER_KEY
from login_app.sessions import EXTENSION_KEY as SESSION_STORE_KEY


# Initialize Faker for generating test data
fake = Faker()

DEFAULT_PASSWORD = "testpass123"


def unique_username(prefix: str = "user") -> str:
    """Build a username that only uses allowed characters and will not collide."""
    return f"{prefix}_{fake.unique.pystr(min_chars=10, max_chars=10)}"


# -----------------------------------------------------------------------------
# Application Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture(scope="session")
def app():
    """
    Create application instance for the test session.

    The 'session' scope means the same app instance is reused
    for all tests, improving performance.
    """
    application = create_app("testing")
    yield application


@pytest.fixture(scope="function")
def client(app):
    """
    Create a test client for making HTTP requests.

    A new client per test keeps cookies from leaking between tests.
    """
    with app.test_client() as test_client:
        yield test_client


@pytest.fixture(scope="function")
def db_session(app):
    """
    Create a fresh database for each test.

    Creates all tables before the test and drops them afterwards.
    """
    with app.app_context():
        db.create_all()
        yield db
        db.session.rollback()
        db.session.remove()
        db.drop_all()


@pytest.fixture(scope="function")
def rate_limiter(app):
    """Return the app's rate limiter."""
    return app.extensions[RATE_LIMITER_KEY]


@pytest.fixture(scope="function")
def session_store(app):
    """Return the app's session store."""
    return app.extensions[SESSION_STORE_KEY]


@pytest.fixture(autouse=True)
def _reset_shared_state(app):
    """Clear rate-limit windows and sessions so tests never throttle each other."""
    app.extensions[RATE_LIMITER_KEY].reset()
    app.extensions[SESSION_STORE_KEY].reset()
    yield
    app.extensions[RATE_LIMITER_KEY].reset()
    app.extensions[SESSION_STORE_KEY].reset()


# -----------------------------------------------------------------------------
# Test Data Factory Fixtures
# -----------------------------------------------------------------------------

@pytest.fixture
def account_factory(db_session) -> Callable[..., Account]:
    """
    Factory fixture for creating Account rows directly in the database.

    Example:
        def test_something(account_factory):
            account = account_factory(username="alice")
            assert account.id is not None
    """

    def _create_account(
        username: str | None = None,
        password: str = DEFAULT_PASSWORD,
    ) -> Account:
        account = Account(username=username or unique_username())
        account.set_password(password)
        db_session.session.add(account)
        db_session.session.commit()
        return account

    return _create_account


@pytest.fixture
def credentials() -> dict[str, str]:
    """Provide a fresh, valid, not-yet-registered username/password pair."""
    return {"username": unique_username("login"), "password": DEFAULT_PASSWORD}


@pytest.fixture
def json_headers() -> dict[str, str]:
    """Headers for clients that want JSON back."""
    return {"Accept": "application/json"}
