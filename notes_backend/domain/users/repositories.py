# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime
from typing import Protocol

from .entities import FederatedIdentity, User

Clock = Callable[[], datetime]


class UserRepository(Protocol):
    def find_by_email(self, email: str) -> User | None: ...
    def find_local_by_email(self, email: str) -> User | None: ...
    def find_by_id(self, user_id: int) -> User | None: ...
    def add(self, user: User) -> User: ...
    def mark_verified(
        self,
        user_id: int,
        *,
        password_hash: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
        date_of_birth: date | None = None,
    ) -> User: ...


class PasswordHasher(Protocol):
    def hash(self, password: str) -> str: ...
    def verify(self, password: str, hashed: str) -> bool: ...


class CredentialIssuer(Protocol):
    def issue(self, user_id: int) -> str: ...
    def authenticate(self, token: str) -> int: ...


class IdentityVerifier(Protocol):
    def verify(self, token: str) -> FederatedIdentity: ...


class NotificationSender(Protocol):
    def send(self, address: str, subject: str, body: str, *, html: str | None = None) -> None: ...
