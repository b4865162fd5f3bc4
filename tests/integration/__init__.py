"""
Integration test package for the login server.

This package contains tests for the HTTP endpoints and pages.
Tests use the Flask test client and demonstrate:
- Registration, login, and logout flows
- Input validation and error envelope testing
- Rate limiting and session lifecycle testing
- Concurrency testing of registration
"""
