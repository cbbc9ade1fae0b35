# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, date, datetime

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from notes_backend.domain.users.entities import AuthProvider
from notes_backend.domain.users.entities import User as DomainUser
from notes_backend.domain.users.exceptions import UserAlreadyExistsError, UserNotFoundError
from notes_backend.domain.users.policies import normalize_email
from notes_backend.domain.users.repositories import UserRepository
from notes_backend.infrastructure.db.models import User
from notes_backend.infrastructure.unit_of_work import unit_of_work_scope


def _aware(value: datetime | None) -> datetime:
    # SQLite drops tzinfo on the way back
    if value is None:
        return datetime.now(UTC)
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _to_domain(row: User) -> DomainUser:
    return DomainUser(
        id=row.id,
        first_name=row.first_name,
        last_name=row.last_name,
        email=row.email,
        provider=AuthProvider(row.provider),
        is_verified=bool(row.is_verified),
        password_hash=row.password_hash,
        date_of_birth=row.date_of_birth,
        provider_subject=row.provider_subject,
        created_at=_aware(row.created_at),
        updated_at=_aware(row.updated_at),
    )


class SqlAlchemyUserRepository(UserRepository):
    def __init__(self, session_factory: Callable[[], Session]):
        self._session_factory = session_factory

    def find_by_email(self, email: str) -> DomainUser | None:
        with unit_of_work_scope(self._session_factory) as session:
            row = session.query(User).filter(User.email == normalize_email(email)).first()
            return _to_domain(row) if row else None

    def find_local_by_email(self, email: str) -> DomainUser | None:
        with unit_of_work_scope(self._session_factory) as session:
            row = (
                session.query(User)
                .filter(
                    User.email == normalize_email(email),
                    User.provider == AuthProvider.LOCAL.value,
                )
                .first()
            )
            return _to_domain(row) if row else None

    def find_by_id(self, user_id: int) -> DomainUser | None:
        with unit_of_work_scope(self._session_factory) as session:
            row = session.get(User, user_id)
            return _to_domain(row) if row else None

    def add(self, user: DomainUser) -> DomainUser:
        try:
            with unit_of_work_scope(self._session_factory) as session:
                row = User(
                    first_name=user.first_name,
                    last_name=user.last_name,
                    email=normalize_email(user.email),
                    date_of_birth=user.date_of_birth,
                    password_hash=user.password_hash,
                    provider=user.provider.value,
                    provider_subject=user.provider_subject,
                    is_verified=user.is_verified,
                )
                session.add(row)
                session.flush()
                session.refresh(row)
                return _to_domain(row)
        except IntegrityError as exc:
            raise UserAlreadyExistsError() from exc

    def mark_verified(
        self,
        user_id: int,
        *,
        password_hash: str | None = None,
        first_name: str | None = None,
        last_name: str | None = None,
        date_of_birth: date | None = None,
    ) -> DomainUser:
        with unit_of_work_scope(self._session_factory) as session:
            row = session.get(User, user_id)
            if row is None:
                raise UserNotFoundError()
            row.is_verified = True
            if password_hash is not None:
                row.password_hash = password_hash
            if first_name:
                row.first_name = first_name
            if last_name:
                row.last_name = last_name
            if date_of_birth is not None:
                row.date_of_birth = date_of_birth
            session.flush()
            session.refresh(row)
            return _to_domain(row)
