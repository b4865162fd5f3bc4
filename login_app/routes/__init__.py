"""
Routes package for the login server.

This package contains route blueprints:
- api: JSON endpoints for registration, login, logout, and health
- views: HTML pages (login/registration form and dashboard)
"""
