# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from notes_backend.domain.users.entities import AuthResult
from notes_backend.domain.users.exceptions import InvalidCredentialsError
from notes_backend.domain.users.policies import normalize_email
from notes_backend.domain.users.repositories import (
    CredentialIssuer,
    PasswordHasher,
    UserRepository,
)
from notes_backend.shared.errors.base import ValidationError
from notes_backend.shared.logging import logger

_TIMING_PLACEHOLDER = "placeholder-password-for-timing"


class LoginUserUseCase:
    def __init__(
        self,
        *,
        users: UserRepository,
        password_hasher: PasswordHasher,
        credentials: CredentialIssuer,
    ) -> None:
        self._users = users
        self._password_hasher = password_hasher
        self._credentials = credentials
        self._placeholder_hash: str | None = None

    def execute(self, email: str, password: str) -> AuthResult:
        email = normalize_email(email or "")
        if not email or not password:
            raise ValidationError(message="Email and password are required")

        user = self._users.find_local_by_email(email)
        if user is None or not user.password_hash:
            # same hashing cost as a real mismatch
            self._password_hasher.verify(password, self._placeholder())
            logger.info("auth.login: rejected (unknown account)")
            raise InvalidCredentialsError()

        if not self._password_hasher.verify(password, user.password_hash):
            logger.info(f"auth.login: rejected (password mismatch) user_id={user.id}")
            raise InvalidCredentialsError()

        token = self._credentials.issue(user.id)
        logger.info(f"auth.login: ok user_id={user.id}")
        return AuthResult(user=user, access_token=token)

    def _placeholder(self) -> str:
        if self._placeholder_hash is None:
            self._placeholder_hash = self._password_hasher.hash(_TIMING_PLACEHOLDER)
        return self._placeholder_hash
