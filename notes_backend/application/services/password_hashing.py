# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Password hashing strategies."""

from __future__ import annotations

from werkzeug.security import check_password_hash, generate_password_hash

from notes_backend.domain.users.repositories import PasswordHasher


class WerkzeugPasswordHasher(PasswordHasher):
    DEFAULT_METHOD = "scrypt"

    def __init__(self, method: str | None = None) -> None:
        self._method = method or self.DEFAULT_METHOD

    def hash(self, password: str) -> str:
        if not password:
            raise ValueError("password must not be empty")
        return str(generate_password_hash(password, method=self._method))

    def verify(self, password: str, hashed: str) -> bool:
        if not hashed:
            return False
        try:
            return bool(check_password_hash(hashed, password))
        except (ValueError, TypeError):
            return False
