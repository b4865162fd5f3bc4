"""
HTML view routes for the login server.

Routes:
    GET  /           - Login/registration page
    GET  /dashboard  - Post-login landing page (session required)
"""

import logging

from flask import Blueprint, g, render_template

from ..auth import login_required
from ..sessions import current_session_store
from ..validation import PASSWORD_MAX_LENGTH, USERNAME_MAX_LENGTH

logger = logging.getLogger(__name__)

views_bp = Blueprint("views", __name__)


@views_bp.route("/")
def index():
    """
    Render the combined login/registration form.

    The page switches between its Login and Register modes on the
    client; both modes post to the JSON endpoints in ``routes.api``.
    """
    return render_template(
        "index.html",
        username_max_length=USERNAME_MAX_LENGTH,
        password_max_length=PASSWORD_MAX_LENGTH,
    )


@views_bp.route("/dashboard")
@login_required
def dashboard():
    """
    Render the dashboard for the signed-in user.

    A fresh CSRF token is embedded on every render for the logout button.
    """
    csrf_token = current_session_store().issue_csrf(g.auth_session.sid)
    logger.info("Dashboard rendered for %s", g.username)
    return render_template("dashboard.html", username=g.username, csrf_token=csrf_token)
