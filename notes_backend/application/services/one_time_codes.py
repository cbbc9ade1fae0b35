# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from enum import StrEnum

from notes_backend.domain.users.entities import PendingRegistration, RegistrationDraft
from notes_backend.domain.users.exceptions import CodeReissueThrottledError, DeliveryError
from notes_backend.domain.users.repositories import Clock, NotificationSender
from notes_backend.infrastructure.auth.pending_registrations import PendingRegistrationStore
from notes_backend.infrastructure.notifications.templates import render_code_email
from notes_backend.shared.logging import logger


class CodePurpose(StrEnum):
    SIGNUP = "signup"
    RESEND = "resend"


class OneTimeCodeIssuer:
    """Generates codes, records them in the pending store and delivers them."""

    def __init__(
        self,
        *,
        store: PendingRegistrationStore,
        notifier: NotificationSender,
        app_name: str = "Take All Notes",
        reissue_interval: float = 0.0,
        clock: Clock | None = None,
    ) -> None:
        self._store = store
        self._notifier = notifier
        self._app_name = app_name
        self._reissue_interval = timedelta(seconds=reissue_interval)
        self._clock = clock or (lambda: datetime.now(UTC))

    def issue(self, draft: RegistrationDraft) -> PendingRegistration:
        """Store a fresh code for ``draft`` (replacing any previous one) and send it."""
        self._check_throttle(draft.email)
        entry = self._store.put(draft.email, self._store.generate_code(), draft)
        self._deliver(entry, CodePurpose.SIGNUP)
        return entry

    def reissue(self, email: str) -> PendingRegistration | None:
        """Replace the code of the live entry for ``email``; ``None`` if there is none."""
        self._check_throttle(email)
        entry = self._store.reissue(email, self._store.generate_code())
        if entry is None:
            return None
        self._deliver(entry, CodePurpose.RESEND)
        return entry

    def _check_throttle(self, email: str) -> None:
        if not self._reissue_interval:
            return
        current = self._store.get(email)
        if current is None:
            return
        elapsed = self._clock() - current.created_at
        if elapsed < self._reissue_interval:
            retry_after = (self._reissue_interval - elapsed).total_seconds()
            logger.info(f"otp.issue: throttled email={email} retry_after={retry_after:.0f}s")
            raise CodeReissueThrottledError(context={"retry_after_seconds": round(retry_after, 1)})

    def _deliver(self, entry: PendingRegistration, purpose: CodePurpose) -> None:
        minutes = max(1, int(self._store.ttl.total_seconds() // 60))
        message = render_code_email(
            entry.code,
            entry.email,
            app_name=self._app_name,
            valid_minutes=minutes,
            resend=purpose is CodePurpose.RESEND,
        )
        try:
            self._notifier.send(entry.email, message.subject, message.text, html=message.html)
        except DeliveryError:
            logger.warning(f"otp.deliver: failed purpose={purpose} email={entry.email}")
            raise
        except Exception as exc:
            logger.opt(exception=exc).error(
                f"otp.deliver: unexpected notifier failure purpose={purpose} email={entry.email}"
            )
            raise DeliveryError() from exc
        logger.info(f"otp.deliver: sent purpose={purpose} email={entry.email}")


__all__ = ["CodePurpose", "OneTimeCodeIssuer"]
