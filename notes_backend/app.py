# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

import atexit

from flask import Flask
from flask_cors import CORS

from notes_backend.infrastructure.container import Container
from notes_backend.infrastructure.db import init_db
from notes_backend.shared.logging import logger, setup_logging
from notes_backend.shared.middleware.error_handler import configure_error_handling
from notes_backend.shared.middleware.request_logger import configure_request_logging


def create_app(container: Container | None = None) -> Flask:
    container = container or Container()
    config = container.config

    setup_logging(debug_mode=config.debug_logging)
    init_db()

    app = Flask(__name__)
    configure_error_handling(app)
    configure_request_logging(app)

    app.config.update(SECRET_KEY=config.secret_key)
    app.extensions["notes_backend.container"] = container

    CORS(app, resources={r"/api/*": {"origins": config.security.allowed_origins}})
    app.register_blueprint(container.auth_controller.as_blueprint())
    app.register_blueprint(container.health_controller.as_blueprint())

    sweeper = container.pending_sweeper
    if config.auth.otp_sweep_interval > 0 and not sweeper.running:
        sweeper.start()
        atexit.register(sweeper.stop)

    @app.after_request
    def _add_security_headers(resp):
        resp.headers.setdefault("X-Frame-Options", "DENY")

        resp.headers.setdefault("Referrer-Policy", "no-referrer")

        resp.headers.setdefault("X-Content-Type-Options", "nosniff")

        resp.headers.setdefault("Cross-Origin-Resource-Policy", "same-origin")
        resp.headers.setdefault("Cross-Origin-Opener-Policy", "same-origin")

        resp.headers.setdefault(
            "Permissions-Policy",
            "geolocation=(), microphone=(), camera=(), payment=(), usb=()",
        )

        resp.headers.setdefault("X-Permitted-Cross-Domain-Policies", "none")

        if config.security.enable_hsts:
            resp.headers.setdefault(
                "Strict-Transport-Security",
                "max-age=31536000; includeSubDomains; preload",
            )

        return resp

    logger.info("Flask app initialized")
    return app


__all__ = ["create_app"]
