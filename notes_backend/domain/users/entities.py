# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from enum import StrEnum

from notes_backend.domain.exceptions import InvariantViolationError

from .policies import MIN_USER_AGE, check_date_of_birth


class AuthProvider(StrEnum):
    LOCAL = "local"
    GOOGLE = "google"


@dataclass(slots=True, frozen=True)
class User:

    id: int
    first_name: str
    last_name: str
    email: str
    provider: AuthProvider
    is_verified: bool
    password_hash: str | None = None
    date_of_birth: date | None = None
    provider_subject: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if self.email != self.email.strip().lower():
            raise InvariantViolationError("email must be normalized", field="email")
        if self.provider is AuthProvider.LOCAL and not self.password_hash:
            raise InvariantViolationError(
                "local accounts require a password hash", field="password_hash"
            )
        if self.provider is not AuthProvider.LOCAL and self.password_hash is not None:
            raise InvariantViolationError(
                "federated accounts cannot carry a password hash", field="password_hash"
            )
        # Local signup accepts a missing date of birth (the web client sends
        # only names, email and password); the age rule applies when one is given.
        if self.date_of_birth is not None:
            check_date_of_birth(
                self.date_of_birth,
                today=self.created_at.date(),
                min_age=MIN_USER_AGE,
            )


@dataclass(slots=True, frozen=True)
class RegistrationDraft:
    """Account data held until the email address is confirmed.

    ``password`` stays plaintext only inside the pending store; it is hashed
    when the registration is confirmed. ``user_id`` binds the draft to an
    existing unverified account instead of creating a new one.
    """

    email: str
    first_name: str = ""
    last_name: str = ""
    password: str | None = field(default=None, repr=False)
    date_of_birth: date | None = None
    provider: AuthProvider = AuthProvider.LOCAL
    user_id: int | None = None


@dataclass(slots=True, frozen=True)
class PendingRegistration:

    email: str
    code: str = field(repr=False)
    draft: RegistrationDraft
    created_at: datetime
    expires_at: datetime

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


@dataclass(slots=True, frozen=True)
class FederatedIdentity:
    """Claims extracted from a verified identity provider token."""

    subject: str
    email: str
    first_name: str = ""
    last_name: str = ""


@dataclass(slots=True, frozen=True)
class AuthResult:

    user: User
    access_token: str
    created: bool = False
