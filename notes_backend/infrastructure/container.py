# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Callable
from datetime import timedelta
from functools import cached_property

from sqlalchemy.orm import Session

from notes_backend.application.services.authentication import AuthenticationService
from notes_backend.application.services.one_time_codes import OneTimeCodeIssuer
from notes_backend.application.services.password_hashing import WerkzeugPasswordHasher
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
from notes_backend.domain.users.repositories import (
    CredentialIssuer,
    IdentityVerifier,
    NotificationSender,
    PasswordHasher,
    UserRepository,
)
from notes_backend.infrastructure.audit import AuditLogger
from notes_backend.infrastructure.auth.google_identity import GoogleIdentityVerifier
from notes_backend.infrastructure.auth.jwt_credentials import JwtCredentialIssuer
from notes_backend.infrastructure.auth.pending_registrations import (
    PendingRegistrationStore,
    PendingRegistrationSweeper,
)
from notes_backend.infrastructure.db import SessionLocal
from notes_backend.infrastructure.notifications.mailers import build_notification_sender
from notes_backend.infrastructure.repositories.users.sqlalchemy_user_repository import (
    SqlAlchemyUserRepository,
)
from notes_backend.interfaces.http.controllers.auth_controller import AuthController
from notes_backend.interfaces.http.controllers.health_controller import HealthController
from notes_backend.shared.config import AppConfig, load_config


class Container:
    """Lazily wires the application graph.

    Keyword overrides replace a component before anything depending on it is
    built, e.g. ``Container(notifier=FakeNotifier())`` in tests.
    """

    def __init__(self, config: AppConfig | None = None, **overrides: object) -> None:
        self.config = config or load_config()
        for name, value in overrides.items():
            if not isinstance(getattr(type(self), name, None), cached_property):
                raise AttributeError(f"Container has no component named {name!r}")
            setattr(self, name, value)

    # Infrastructure

    @cached_property
    def session_factory(self) -> Callable[[], Session]:
        return SessionLocal

    @cached_property
    def user_repository(self) -> UserRepository:
        return SqlAlchemyUserRepository(self.session_factory)

    @cached_property
    def password_hasher(self) -> PasswordHasher:
        return WerkzeugPasswordHasher(self.config.auth.password_hash_method)

    @cached_property
    def pending_registrations(self) -> PendingRegistrationStore:
        return PendingRegistrationStore(ttl=timedelta(seconds=self.config.auth.otp_ttl))

    @cached_property
    def pending_sweeper(self) -> PendingRegistrationSweeper:
        return PendingRegistrationSweeper(
            self.pending_registrations, interval=self.config.auth.otp_sweep_interval
        )

    @cached_property
    def notifier(self) -> NotificationSender:
        return build_notification_sender(self.config.email)

    @cached_property
    def credentials(self) -> CredentialIssuer:
        return JwtCredentialIssuer(
            self.config.secret_key,
            lifetime=timedelta(seconds=self.config.auth.access_token_ttl),
            algorithm=self.config.auth.jwt_algorithm,
        )

    @cached_property
    def identity_verifier(self) -> IdentityVerifier:
        return GoogleIdentityVerifier(
            client_id=self.config.google.client_id,
            certs_url=self.config.google.certs_url,
            timeout=self.config.google.timeout,
            min_refresh_interval=self.config.google.keys_refresh_interval,
        )

    @cached_property
    def audit_logger(self) -> AuditLogger:
        return AuditLogger(self.session_factory)

    # Application

    @cached_property
    def code_issuer(self) -> OneTimeCodeIssuer:
        return OneTimeCodeIssuer(
            store=self.pending_registrations,
            notifier=self.notifier,
            app_name=self.config.email.app_name,
            reissue_interval=self.config.auth.otp_reissue_interval,
        )

    @cached_property
    def start_registration_use_case(self) -> StartRegistrationUseCase:
        return StartRegistrationUseCase(
            users=self.user_repository,
            codes=self.code_issuer,
            min_age=self.config.auth.min_user_age,
        )

    @cached_property
    def confirm_registration_use_case(self) -> ConfirmRegistrationUseCase:
        return ConfirmRegistrationUseCase(
            users=self.user_repository,
            pending=self.pending_registrations,
            password_hasher=self.password_hasher,
            credentials=self.credentials,
        )

    @cached_property
    def login_user_use_case(self) -> LoginUserUseCase:
        return LoginUserUseCase(
            users=self.user_repository,
            password_hasher=self.password_hasher,
            credentials=self.credentials,
        )

    @cached_property
    def federated_login_use_case(self) -> FederatedLoginUseCase:
        return FederatedLoginUseCase(
            users=self.user_repository,
            verifier=self.identity_verifier,
            credentials=self.credentials,
        )

    @cached_property
    def resend_code_use_case(self) -> ResendCodeUseCase:
        return ResendCodeUseCase(users=self.user_repository, codes=self.code_issuer)

    @cached_property
    def get_current_user_use_case(self) -> GetCurrentUserUseCase:
        return GetCurrentUserUseCase(users=self.user_repository)

    @cached_property
    def auth_service(self) -> AuthenticationService:
        return AuthenticationService(
            start_registration=self.start_registration_use_case,
            confirm_registration=self.confirm_registration_use_case,
            login=self.login_user_use_case,
            federated_login=self.federated_login_use_case,
            resend_code=self.resend_code_use_case,
            current_user=self.get_current_user_use_case,
        )

    # HTTP

    @cached_property
    def auth_controller(self) -> AuthController:
        return AuthController(
            auth_service=self.auth_service,
            credentials=self.credentials,
            audit=self.audit_logger,
        )

    @cached_property
    def health_controller(self) -> HealthController:
        return HealthController(pending=self.pending_registrations)


__all__ = ["Container"]
