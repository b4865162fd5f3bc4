"""Playwright fixtures for the login server E2E tests."""

from __future__ import annotations

import os
import time
import uuid
from collections.abc import Callable, Generator

import pytest
from playwright.sync_api import Browser, BrowserContext, Page

from tests.e2e.pages.auth_page import AuthPage
from tests.e2e.pages.dashboard_page import DashboardPage
from tests.live_server import live_server_url


@pytest.fixture(scope="session")
def live_server(tmp_path_factory) -> Generator[str, None, None]:
    """
    Return a live server URL for E2E tests.

    If TEST_BASE_URL is set, use that server.
    Otherwise serve a fresh app from a background thread for the session.
    """
    yield from live_server_url(
        base_url_env="TEST_BASE_URL",
        data_dir=tmp_path_factory.mktemp("e2e"),
    )


@pytest.fixture(scope="session")
def browser_context_args():
    return {
        "viewport": {"width": 1280, "height": 720},
        "ignore_https_errors": True,
    }


@pytest.fixture(scope="function")
def context(
    browser: Browser, browser_context_args: dict
) -> Generator[BrowserContext, None, None]:
    context = browser.new_context(**browser_context_args)
    yield context
    context.close()


@pytest.fixture(scope="function")
def page(context: BrowserContext) -> Generator[Page, None, None]:
    page = context.new_page()
    yield page
    page.close()


@pytest.fixture
def credential_factory() -> Callable[[str], dict[str, str]]:
    """Factory for unique E2E user credentials."""

    def _make(prefix: str = "user") -> dict[str, str]:
        return {
            "username": f"{prefix}{int(time.time() * 1000)}{uuid.uuid4().hex[:4]}",
            "password": "testpass123",
        }

    return _make


@pytest.fixture
def auth_page(page: Page, live_server: str) -> AuthPage:
    return AuthPage(page, live_server)


@pytest.fixture
def dashboard_page(page: Page, live_server: str) -> DashboardPage:
    return DashboardPage(page, live_server)


@pytest.fixture
def authenticated_user(
    credential_factory: Callable[[str], dict[str, str]],
    auth_page: AuthPage,
    dashboard_page: DashboardPage,
) -> dict[str, str]:
    """Register and login a unique user in current browser context."""
    credentials = credential_factory("loginuser")
    auth_page.navigate()
    auth_page.register(**credentials)
    auth_page.login(**credentials)
    dashboard_page.assert_url_contains("/dashboard")
    return credentials


@pytest.hookimpl(tryfirst=True, hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """Capture screenshot on UI test failure."""
    outcome = yield
    report = outcome.get_result()

    if report.when == "call" and report.failed:
        page = item.funcargs.get("page")
        if page:
            screenshot_dir = "test-results/screenshots"
            os.makedirs(screenshot_dir, exist_ok=True)
            test_name = item.name.replace("/", "_").replace("::", "_")
            screenshot_path = f"{screenshot_dir}/{test_name}.png"
            try:
                page.screenshot(path=screenshot_path)
                print(f"\nScreenshot saved: {screenshot_path}")
            except Exception as exc:  # pragma: no cover - best effort logging
                print(f"\nFailed to capture screenshot: {exc}")
