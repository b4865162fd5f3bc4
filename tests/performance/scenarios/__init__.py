"""
Locust scenario user classes.

Each module in this package defines one Locust ``HttpUser`` subclass
that models a specific traffic pattern:

- :mod:`.homepage` — page load plus a login attempt that must be refused
- :mod:`.stress` — GET / with minimal think-time
- :mod:`.auth_flow` — register once, then login, dashboard, logout cycles

All concrete scenarios inherit from the abstract base class in
:mod:`.base`, which holds the shared request checks.
"""
