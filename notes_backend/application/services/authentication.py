# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Entry point for the authentication operations exposed over HTTP."""

from __future__ import annotations

from datetime import date

from notes_backend.application.use_cases.users.confirm_registration import (
    ConfirmRegistrationUseCase,
)
from notes_backend.application.use_cases.users.federated_login import FederatedLoginUseCase
from notes_backend.application.use_cases.users.get_current_user import GetCurrentUserUseCase
from notes_backend.application.use_cases.users.login_user import LoginUserUseCase
from notes_backend.application.use_cases.users.resend_code import ResendCodeUseCase
from notes_backend.application.use_cases.users.start_registration import (
    StartRegistrationUseCase,
)
from notes_backend.domain.users.entities import AuthResult, PendingRegistration, User


class AuthenticationService:
    """Groups the registration, login and lookup use cases behind one object.

    Each operation is a separate use case so it can be tested alone; this
    class only forwards to them.
    """

    def __init__(
        self,
        *,
        start_registration: StartRegistrationUseCase,
        confirm_registration: ConfirmRegistrationUseCase,
        login: LoginUserUseCase,
        federated_login: FederatedLoginUseCase,
        resend_code: ResendCodeUseCase,
        current_user: GetCurrentUserUseCase,
    ) -> None:
        self._start_registration = start_registration
        self._confirm_registration = confirm_registration
        self._login = login
        self._federated_login = federated_login
        self._resend_code = resend_code
        self._current_user = current_user

    def register_start(
        self,
        first_name: str,
        last_name: str,
        email: str,
        password: str,
        date_of_birth: date | None = None,
    ) -> PendingRegistration:
        return self._start_registration.execute(
            first_name, last_name, email, password, date_of_birth
        )

    def register_confirm(self, email: str, code: str) -> AuthResult:
        return self._confirm_registration.execute(email, code)

    def login(self, email: str, password: str) -> AuthResult:
        return self._login.execute(email, password)

    def federated_login(self, external_token: str) -> AuthResult:
        return self._federated_login.execute(external_token)

    def resend_code(self, email: str) -> PendingRegistration:
        return self._resend_code.execute(email)

    def current_user(self, user_id: int) -> User:
        return self._current_user.execute(user_id)


__all__ = ["AuthenticationService"]
