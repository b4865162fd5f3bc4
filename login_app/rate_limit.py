"""
In-memory login rate limiter.

Tracks login attempts per client key (normally the client address) in
fixed windows. The first attempt from a key opens a window of
``window_seconds``; every attempt inside that window counts, and once
the count passes ``max_attempts`` the key is denied until the window
ends. The first attempt after that opens a new window.

The table is process-wide shared state. A single lock guards every
read-modify-write so concurrent attempts from one client can never lose
an increment. The number of tracked keys is bounded: when the table is
full, expired windows are dropped first and then the oldest window is
evicted.
"""

from __future__ import annotations

import logging
import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

from flask import Flask, current_app

logger = logging.getLogger(__name__)

EXTENSION_KEY = "login_rate_limiter"


@dataclass
class _Window:
    started_at: float
    attempts: int


class RateLimiter:
    """
    Fixed-window attempt counter keyed by client identity.

    Args:
        max_attempts: Attempts allowed inside one window.
        window_seconds: Window length in seconds.
        max_entries: Upper bound on tracked client keys.
        clock: Monotonic time source, replaceable in tests.
    """

    def __init__(
        self,
        max_attempts: int = 5,
        window_seconds: float = 60,
        max_entries: int = 10000,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_attempts = max_attempts
        self.window_seconds = window_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._windows: dict[str, _Window] = {}
        self._lock = threading.Lock()

    def init_app(self, app: Flask) -> None:
        """Load limits from *app* config and register on the app."""
        self.max_attempts = int(app.config["RATE_LIMIT_MAX_ATTEMPTS"])
        self.window_seconds = int(app.config["RATE_LIMIT_WINDOW_SECONDS"])
        self.max_entries = int(app.config["RATE_LIMIT_MAX_ENTRIES"])
        app.extensions[EXTENSION_KEY] = self

    def check(self, client_key: str) -> bool:
        """
        Record one attempt for *client_key* and decide whether to allow it.

        Returns:
            ``True`` if the attempt is within the limit, ``False`` if the
            client is throttled for the rest of the current window.
        """
        now = self._clock()
        with self._lock:
            window = self._windows.get(client_key)
            if window is not None and now - window.started_at >= self.window_seconds:
                window.started_at = now
                window.attempts = 1
                return True

            if window is not None:
                window.attempts += 1
                return window.attempts <= self.max_attempts

            if len(self._windows) >= self.max_entries:
                self._make_room(now)
            self._windows[client_key] = _Window(started_at=now, attempts=1)
            return True

    def retry_after(self, client_key: str) -> int:
        """Seconds until *client_key*'s window resets (0 if untracked)."""
        now = self._clock()
        with self._lock:
            window = self._windows.get(client_key)
            if window is None:
                return 0
            remaining = self.window_seconds - (now - window.started_at)
        return max(math.ceil(remaining), 0)

    def attempts(self, client_key: str) -> int:
        """Attempts counted for *client_key* in its current window."""
        with self._lock:
            window = self._windows.get(client_key)
            return window.attempts if window is not None else 0

    def reset(self, client_key: str | None = None) -> None:
        """Forget one client's window, or every window when no key is given."""
        with self._lock:
            if client_key is None:
                self._windows.clear()
            else:
                self._windows.pop(client_key, None)

    def cleanup(self) -> int:
        """Drop every expired window and return how many were removed."""
        now = self._clock()
        with self._lock:
            return self._purge_expired(now)

    def __len__(self) -> int:
        with self._lock:
            return len(self._windows)

    def _purge_expired(self, now: float) -> int:
        expired = [
            key
            for key, window in self._windows.items()
            if now - window.started_at >= self.window_seconds
        ]
        for key in expired:
            del self._windows[key]
        return len(expired)

    def _make_room(self, now: float) -> None:
        # Caller holds the lock.
        if self._purge_expired(now):
            return
        oldest_key = min(self._windows, key=lambda key: self._windows[key].started_at)
        del self._windows[oldest_key]
        logger.warning("Rate limit table full; evicted oldest entry")


def current_rate_limiter() -> RateLimiter:
    """Return the rate limiter registered on the active application."""
    return current_app.extensions[EXTENSION_KEY]
