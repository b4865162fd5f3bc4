"""
Smoke-test fixtures for the login server.

Provides the ``smoke_base_url`` session-scoped fixture that yields a healthy
server URL shared across the entire smoke suite.  URL resolution is delegated
to :func:`tests.live_server.live_server_url`, which uses ``TEST_BASE_URL``
when it points at a deployed server and otherwise serves a fresh app from a
background thread.

Key SDET Concepts Demonstrated:
- Session-scoped URL fixtures to share a single live server across all smoke tests
- Delegating server lifecycle management to a shared helper for DRY reuse across suites
"""

from __future__ import annotations

from collections.abc import Generator

import pytest

from tests.live_server import live_server_url


@pytest.fixture(scope="session")
def smoke_base_url(tmp_path_factory) -> Generator[str, None, None]:
    """Yield a healthy server URL for smoke tests."""
    yield from live_server_url(
        base_url_env="TEST_BASE_URL",
        data_dir=tmp_path_factory.mktemp("smoke"),
    )
