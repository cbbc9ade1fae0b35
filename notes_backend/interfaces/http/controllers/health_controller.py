# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from flask import Blueprint, Response, jsonify
from sqlalchemy.exc import SQLAlchemyError

from notes_backend.infrastructure.auth.pending_registrations import PendingRegistrationStore
from notes_backend.infrastructure.health import check_database
from notes_backend.shared.logging import logger


class HealthController:
    def __init__(self, *, pending: PendingRegistrationStore | None = None) -> None:
        self._pending = pending

    def as_blueprint(self) -> Blueprint:
        bp = Blueprint("health", __name__)
        bp.add_url_rule("/api/health", view_func=self.health, methods=["GET"])
        return bp

    def health(self) -> tuple[Response, int]:
        status: dict[str, object] = {"status": "ok"}
        try:
            check_database()
            status["database"] = "ok"
        except SQLAlchemyError as exc:
            logger.error(f"health: database check failed: {type(exc).__name__}")
            status["status"] = "degraded"
            status["database"] = "error"
        if self._pending is not None:
            status["pending_registrations"] = len(self._pending)
        return jsonify(status), 200 if status["status"] == "ok" else 503
