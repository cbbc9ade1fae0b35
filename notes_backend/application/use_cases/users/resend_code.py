# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from notes_backend.application.services.one_time_codes import OneTimeCodeIssuer
from notes_backend.domain.users.entities import PendingRegistration, RegistrationDraft
from notes_backend.domain.users.exceptions import PendingVerificationNotFoundError
from notes_backend.domain.users.policies import normalize_email
from notes_backend.domain.users.repositories import UserRepository
from notes_backend.shared.errors.base import ValidationError
from notes_backend.shared.logging import logger


class ResendCodeUseCase:
    def __init__(self, *, users: UserRepository, codes: OneTimeCodeIssuer) -> None:
        self._users = users
        self._codes = codes

    def execute(self, email: str) -> PendingRegistration:
        email = normalize_email(email or "")
        if not email:
            raise ValidationError(message="Email is required")

        entry = self._codes.reissue(email)
        if entry is not None:
            logger.info(f"auth.resend: code reissued email={email}")
            return entry

        user = self._users.find_by_email(email)
        if user is None or user.is_verified:
            raise PendingVerificationNotFoundError()

        entry = self._codes.issue(
            RegistrationDraft(
                email=email,
                first_name=user.first_name,
                last_name=user.last_name,
                provider=user.provider,
                user_id=user.id,
            )
        )
        logger.info(f"auth.resend: code issued for unverified user_id={user.id}")
        return entry
