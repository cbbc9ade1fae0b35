# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from notes_backend.domain.users.entities import AuthProvider, AuthResult, User
from notes_backend.domain.users.exceptions import UserAlreadyExistsError
from notes_backend.domain.users.repositories import (
    CredentialIssuer,
    IdentityVerifier,
    UserRepository,
)
from notes_backend.shared.errors.base import ValidationError
from notes_backend.shared.logging import logger


class FederatedLoginUseCase:
    """Signs in with an identity provider token, creating the account on first use.

    Accounts are linked by email alone: an existing account with the same
    email is logged in whatever provider created it.
    """

    def __init__(
        self,
        *,
        users: UserRepository,
        verifier: IdentityVerifier,
        credentials: CredentialIssuer,
    ) -> None:
        self._users = users
        self._verifier = verifier
        self._credentials = credentials

    def execute(self, external_token: str) -> AuthResult:
        if not external_token or not external_token.strip():
            raise ValidationError(message="Google token is required")

        identity = self._verifier.verify(external_token.strip())

        user = self._users.find_by_email(identity.email)
        created = False
        if user is None:
            try:
                user = self._users.add(
                    User(
                        id=0,
                        first_name=identity.first_name,
                        last_name=identity.last_name,
                        email=identity.email,
                        provider=AuthProvider.GOOGLE,
                        is_verified=True,
                        provider_subject=identity.subject,
                    )
                )
                created = True
            except UserAlreadyExistsError:
                # a concurrent request created it first
                user = self._users.find_by_email(identity.email)
                if user is None:
                    raise

        token = self._credentials.issue(user.id)
        logger.info(f"auth.federated: ok user_id={user.id} created={created}")
        return AuthResult(user=user, access_token=token, created=created)
