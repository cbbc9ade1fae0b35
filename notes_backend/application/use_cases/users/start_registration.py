# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from datetime import UTC, date, datetime

from notes_backend.application.services.one_time_codes import OneTimeCodeIssuer
from notes_backend.domain.users.entities import AuthProvider, PendingRegistration, RegistrationDraft
from notes_backend.domain.users.exceptions import UserAlreadyExistsError
from notes_backend.domain.users.policies import (
    MIN_USER_AGE,
    check_date_of_birth,
    check_email,
    check_name,
    check_password,
)
from notes_backend.domain.users.repositories import Clock, UserRepository
from notes_backend.shared.logging import logger

from .validation import validating


class StartRegistrationUseCase:
    def __init__(
        self,
        *,
        users: UserRepository,
        codes: OneTimeCodeIssuer,
        min_age: int = MIN_USER_AGE,
        clock: Clock | None = None,
    ) -> None:
        self._users = users
        self._codes = codes
        self._min_age = min_age
        self._clock = clock or (lambda: datetime.now(UTC))

    def execute(
        self,
        first_name: str,
        last_name: str,
        email: str,
        password: str,
        date_of_birth: date | None = None,
    ) -> PendingRegistration:
        with validating():
            first_name = check_name(first_name, field="firstName", label="First name")
            last_name = check_name(last_name, field="lastName", label="Last name")
            email = check_email(email)
            check_password(password)
            if date_of_birth is not None:
                check_date_of_birth(
                    date_of_birth, today=self._clock().date(), min_age=self._min_age
                )

        existing = self._users.find_by_email(email)
        if existing and existing.is_verified:
            raise UserAlreadyExistsError()

        draft = RegistrationDraft(
            email=email,
            first_name=first_name,
            last_name=last_name,
            password=password,
            date_of_birth=date_of_birth,
            provider=AuthProvider.LOCAL,
            user_id=existing.id if existing else None,
        )
        entry = self._codes.issue(draft)
        logger.info(f"auth.signup: code issued email={email} rebind={existing is not None}")
        return entry
