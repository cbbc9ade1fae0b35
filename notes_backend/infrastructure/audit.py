# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import json
from collections.abc import Callable
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from sqlalchemy.orm import Session

from notes_backend.shared.logging import logger


class AuditAction(str, Enum):
    # Registration
    SIGNUP_STARTED = "signup_started"
    SIGNUP_CONFIRMED = "signup_confirmed"
    CODE_REJECTED = "code_rejected"
    CODE_RESENT = "code_resent"
    CODE_DELIVERY_FAILED = "code_delivery_failed"

    # Authentication
    LOGIN_SUCCESS = "login_success"
    LOGIN_FAILED = "login_failed"
    FEDERATED_LOGIN = "federated_login"
    FEDERATED_SIGNUP = "federated_signup"
    FEDERATED_REJECTED = "federated_rejected"


def _sanitize_details(details: dict[str, Any]) -> dict[str, Any]:
    sensitive_keys = {"password", "token", "otp", "code", "secret", "key"}

    sanitized = {}
    for key, value in details.items():
        key_lower = key.lower()

        if any(sensitive in key_lower for sensitive in sensitive_keys):
            sanitized[key] = "***REDACTED***"
        else:
            sanitized[key] = value

    return sanitized


class AuditLogger:
    def __init__(self, session_factory: Callable[[], Session] | None = None) -> None:
        self._session_factory = session_factory

    def log(
        self,
        action: AuditAction,
        user_id: int | None = None,
        ip_address: str | None = None,
        details: dict[str, Any] | None = None,
        success: bool = True,
    ) -> None:
        timestamp = datetime.now(UTC)
        safe_details = _sanitize_details(details) if details else {}

        log_message = (
            f"AUDIT: {action.value} | "
            f"user_id={user_id} | "
            f"ip={ip_address} | "
            f"success={success}"
        )
        if safe_details:
            log_message += f" | details={safe_details}"

        if success:
            logger.info(log_message)
        else:
            logger.warning(log_message)

        if self._session_factory is not None:
            self._store(timestamp, action, user_id, ip_address, success, safe_details)

    def _store(
        self,
        timestamp: datetime,
        action: AuditAction,
        user_id: int | None,
        ip_address: str | None,
        success: bool,
        details: dict[str, Any],
    ) -> None:
        from notes_backend.infrastructure.db.models import AuditLog

        assert self._session_factory is not None
        db = self._session_factory()
        try:
            db.add(
                AuditLog(
                    timestamp=timestamp,
                    action=action.value,
                    user_id=user_id,
                    ip_address=ip_address,
                    success=success,
                    details_json=json.dumps(details, default=str) if details else None,
                )
            )
            db.commit()
        except Exception as db_error:
            db.rollback()
            logger.warning(f"Failed to store audit log in database: {db_error}")
        finally:
            db.close()


__all__ = [
    "AuditAction",
    "AuditLogger",
]
