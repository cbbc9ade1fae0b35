# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from notes_backend.domain.users.entities import AuthResult, PendingRegistration, User
from notes_backend.domain.users.policies import check_code, check_email
from notes_backend.domain.users.repositories import (
    CredentialIssuer,
    PasswordHasher,
    UserRepository,
)
from notes_backend.infrastructure.auth.pending_registrations import PendingRegistrationStore
from notes_backend.shared.logging import logger

from .validation import validating


class ConfirmRegistrationUseCase:
    def __init__(
        self,
        *,
        users: UserRepository,
        pending: PendingRegistrationStore,
        password_hasher: PasswordHasher,
        credentials: CredentialIssuer,
    ) -> None:
        self._users = users
        self._pending = pending
        self._password_hasher = password_hasher
        self._credentials = credentials

    def execute(self, email: str, code: str) -> AuthResult:
        with validating():
            email = check_email(email)
            code = check_code(code.strip())

        # consume() is atomic: of two concurrent confirms only one gets the entry
        entry = self._pending.consume(email, code)
        try:
            user = self._persist(entry)
        except Exception:
            restored = self._pending.restore(entry)
            logger.warning(f"auth.confirm: persisting failed email={email} restored={restored}")
            raise

        token = self._credentials.issue(user.id)
        logger.info(f"auth.confirm: account verified user_id={user.id}")
        return AuthResult(user=user, access_token=token, created=True)

    def _persist(self, entry: PendingRegistration) -> User:
        draft = entry.draft
        password_hash = self._password_hasher.hash(draft.password) if draft.password else None

        if draft.user_id is not None:
            return self._users.mark_verified(
                draft.user_id,
                password_hash=password_hash,
                first_name=draft.first_name or None,
                last_name=draft.last_name or None,
                date_of_birth=draft.date_of_birth,
            )

        return self._users.add(
            User(
                id=0,
                first_name=draft.first_name,
                last_name=draft.last_name,
                email=draft.email,
                provider=draft.provider,
                is_verified=True,
                password_hash=password_hash,
                date_of_birth=draft.date_of_birth,
            )
        )
