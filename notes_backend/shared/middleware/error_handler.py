# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from flask import Flask, Response, jsonify
from werkzeug.exceptions import HTTPException

from notes_backend.shared.errors import register_error_handler


def _http_error_code(exc: HTTPException) -> str:
    return (exc.name or "http_error").lower().replace(" ", "_")


def configure_error_handling(app: Flask) -> None:
    """Install JSON error responses for application and routing errors."""
    register_error_handler(app)

    @app.errorhandler(HTTPException)
    def _handle_http(exc: HTTPException) -> tuple[Response, int]:
        # unknown routes and wrong methods answer in the API's JSON shape
        return jsonify({"error": _http_error_code(exc)}), exc.code or 500
