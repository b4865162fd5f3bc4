"""WSGI entry point for the login server."""

import os

from login_app import create_app
from login_app.tls import ssl_context

app = create_app(os.getenv("FLASK_ENV", "production"))


if __name__ == "__main__":
    # Threaded built-in server; HTTPS when the configured cert/key exist.
    app.run(
        host=app.config["SERVER_HOST"],
        port=app.config["SERVER_PORT"],
        threaded=True,
        ssl_context=ssl_context(app.config),
    )
