"""
Helper utilities for Locust performance scenarios.

Provides the building blocks that every Locust user class relies on:
credential generation, the register/login/logout workflow, and the
response checks shared across scenarios.  Keeping these in a shared
module avoids duplication across scenario files and makes it easy to
adjust data-generation strategies in one place.

Key Concepts Demonstrated:
- Collision-free identity generation using timestamp + random suffix
- Reusable auth helpers that wrap Locust's ``catch_response`` protocol
- Treating throttling (429) as an expected outcome rather than an error
"""

from __future__ import annotations

import random
import string
import time
from typing import Any

from locust.clients import HttpSession

# Responses the login endpoint may legitimately give to bad credentials.
EXPECTED_LOGIN_REJECTIONS = (400, 401, 429)

FORM_HEADERS = {
    "Content-Type": "application/x-www-form-urlencoded",
    "Accept": "application/json",
}


def _safe_json(response: Any) -> dict[str, Any]:
    """
    Return response JSON as dict, or an empty dict if parsing fails.

    Locust responses may contain non-JSON bodies (e.g. on 5xx errors or
    proxy timeouts).  Using this wrapper prevents ``ValueError`` from
    propagating into task methods where it would abort the virtual user.

    Args:
        response: A Locust/requests ``Response`` object.

    Returns:
        The parsed JSON body as a dictionary, or ``{}`` if parsing fails
        or the top-level value is not a dict.
    """
    try:
        data = response.json()
    except ValueError:
        return {}

    if isinstance(data, dict):
        return data
    return {}


def is_json(response: Any) -> bool:
    """True when the response declares a JSON content type."""
    return "application/json" in response.headers.get("Content-Type", "")


def register_user(client: HttpSession, *, username: str, password: str) -> bool:
    """
    Register a user through the real endpoint.

    Args:
        client: The Locust HTTP session (auto-manages cookies/connection
            pooling).
        username: Desired username for the new account.
        password: Plain-text password (hashed server-side).

    Returns:
        ``True`` if the server responded with ``201 Created`` and a valid
        user payload, ``False`` otherwise.
    """
    with client.post(
        "/register",
        data={"username": username, "password": password},
        headers=FORM_HEADERS,
        name="/register [POST]",
        catch_response=True,
    ) as response:
        if response.status_code != 201:
            response.failure(f"Expected 201, got {response.status_code}")
            return False

        body = _safe_json(response)
        user_data = body.get("user")
        if not isinstance(user_data, dict) or user_data.get("username") != username:
            response.failure("Registration response missing user payload")
            return False

        response.success()
        return True


def login_user(client: HttpSession, *, username: str, password: str) -> str | None:
    """
    Log in through the cookie flow and return the CSRF token for logout.

    A ``429`` is recorded as a success: the limiter is doing its job,
    and counting it as an error would fail every run that logs in more
    than the per-address allowance.

    Returns:
        The CSRF token on a successful login, or ``None`` if the login
        was throttled or failed.
    """
    with client.post(
        "/login",
        data={"username": username, "password": password},
        headers=FORM_HEADERS,
        name="/login [POST]",
        catch_response=True,
    ) as response:
        if response.status_code == 429:
            response.success()
            return None
        if response.status_code != 200:
            response.failure(f"Expected 200, got {response.status_code}")
            return None

        body = _safe_json(response)
        csrf_token = body.get("csrf_token")
        if body.get("redirect") != "/dashboard" or not csrf_token:
            response.failure("Login response missing redirect or csrf_token")
            return None

        response.success()
        return csrf_token


def logout_user(client: HttpSession, csrf_token: str) -> bool:
    """Close the cookie session using the token handed out at login."""
    with client.post(
        "/logout",
        headers={"Accept": "application/json", "X-CSRF-Token": csrf_token},
        name="/logout [POST]",
        catch_response=True,
    ) as response:
        if response.status_code != 200:
            response.failure(f"Expected 200, got {response.status_code}")
            return False

        response.success()
        return True


def unique_user_identity() -> tuple[str, str]:
    """
    Generate unique credentials to avoid collisions across runs.

    Combines a millisecond timestamp with a short random suffix so that
    parallel Locust workers (or back-to-back CI runs) never produce
    duplicate usernames.  Only letters, digits, and underscores are
    used so every name passes the server's username rule.

    Returns:
        A ``(username, password)`` tuple.  The password is a fixed
        string; security of test accounts is not a concern.
    """
    ts = int(time.time() * 1000)
    suffix = "".join(random.choices(string.ascii_lowercase + string.digits, k=6))
    return f"perf_{ts}_{suffix}", "PerfPass123!"
