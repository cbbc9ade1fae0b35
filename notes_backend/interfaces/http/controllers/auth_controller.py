# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from flask import Blueprint, Response, jsonify, request
from pydantic import ValidationError

from notes_backend.application.services.authentication import AuthenticationService
from notes_backend.domain.users.entities import AuthResult
from notes_backend.domain.users.exceptions import (
    DeliveryError,
    InvalidCodeError,
    InvalidOrExpiredCodeError,
    InvalidTokenError,
)
from notes_backend.domain.users.repositories import CredentialIssuer
from notes_backend.infrastructure.audit import AuditAction, AuditLogger
from notes_backend.interfaces.http.bearer import authed_request, bearer_required
from notes_backend.interfaces.http.dto.auth import (
    AuthResponseDTO,
    CodeSentDTO,
    CurrentUserDTO,
    FederatedLoginRequestDTO,
    LoginRequestDTO,
    ResendCodeRequestDTO,
    SignupRequestDTO,
    UserSummaryDTO,
    VerifyOtpRequestDTO,
)
from notes_backend.shared.errors.validation import raise_validation_error
from notes_backend.shared.logging import logger
from notes_backend.shared.middleware.rate_limit import rate_limit


def _get_client_ip() -> str | None:
    ip_address = request.headers.get("X-Forwarded-For", request.remote_addr)
    if ip_address and "," in ip_address:
        ip_address = ip_address.split(",")[0].strip()
    return ip_address


def _auth_response(result: AuthResult, message: str, status: int) -> tuple[Response, int]:
    payload = AuthResponseDTO(
        message=message,
        access_token=result.access_token,
        user=UserSummaryDTO.from_user(result.user),
    ).model_dump(by_alias=True)
    response = jsonify(payload)
    response.headers["Cache-Control"] = "no-store"
    return response, status


class AuthController:
    def __init__(
        self,
        *,
        auth_service: AuthenticationService,
        credentials: CredentialIssuer,
        audit: AuditLogger | None = None,
    ) -> None:
        self._auth = auth_service
        self._credentials = credentials
        self._audit = audit or AuditLogger()

    @rate_limit(limit=5, window_seconds=60.0)
    def signup(self) -> tuple[Response, int]:
        try:
            dto = SignupRequestDTO.model_validate(request.get_json(silent=True) or {})
        except ValidationError as exc:
            raise_validation_error(exc)

        ip_address = _get_client_ip()
        try:
            entry = self._auth.register_start(
                dto.first_name, dto.last_name, dto.email, dto.password, dto.date_of_birth
            )
        except DeliveryError:
            self._audit.log(
                AuditAction.CODE_DELIVERY_FAILED,
                ip_address=ip_address,
                details={"email": dto.email, "purpose": "signup"},
                success=False,
            )
            raise

        self._audit.log(
            AuditAction.SIGNUP_STARTED,
            ip_address=ip_address,
            details={"email": entry.email, "rebind": entry.draft.user_id is not None},
        )
        payload = CodeSentDTO(
            message="OTP sent to your email. Please check your inbox.", email=entry.email
        ).model_dump()
        return jsonify(payload), 200

    @rate_limit(limit=10, window_seconds=60.0)
    def verify_otp(self) -> tuple[Response, int]:
        try:
            dto = VerifyOtpRequestDTO.model_validate(request.get_json(silent=True) or {})
        except ValidationError as exc:
            raise_validation_error(exc)

        ip_address = _get_client_ip()
        try:
            result = self._auth.register_confirm(dto.email, dto.otp)
        except (InvalidOrExpiredCodeError, InvalidCodeError) as exc:
            self._audit.log(
                AuditAction.CODE_REJECTED,
                ip_address=ip_address,
                details={"email": dto.email, "reason": type(exc).__name__},
                success=False,
            )
            raise

        self._audit.log(
            AuditAction.SIGNUP_CONFIRMED,
            user_id=result.user.id,
            ip_address=ip_address,
            details={"email": result.user.email},
        )
        return _auth_response(result, "User created successfully", 201)

    @rate_limit(limit=10, window_seconds=60.0)
    def login(self) -> tuple[Response, int]:
        try:
            dto = LoginRequestDTO.model_validate(request.get_json(silent=True) or {})
        except ValidationError as exc:
            raise_validation_error(exc)

        ip_address = _get_client_ip()
        try:
            result = self._auth.login(dto.email, dto.password)
        except Exception as exc:
            self._audit.log(
                AuditAction.LOGIN_FAILED,
                ip_address=ip_address,
                details={"email": dto.email, "error": type(exc).__name__},
                success=False,
            )
            raise

        self._audit.log(
            AuditAction.LOGIN_SUCCESS,
            user_id=result.user.id,
            ip_address=ip_address,
            details={"email": result.user.email},
        )
        return _auth_response(result, "Login successful", 200)

    @rate_limit(limit=10, window_seconds=60.0)
    def google(self) -> tuple[Response, int]:
        try:
            dto = FederatedLoginRequestDTO.model_validate(request.get_json(silent=True) or {})
        except ValidationError as exc:
            raise_validation_error(exc)

        ip_address = _get_client_ip()
        try:
            result = self._auth.federated_login(dto.external_token)
        except InvalidTokenError as exc:
            self._audit.log(
                AuditAction.FEDERATED_REJECTED,
                ip_address=ip_address,
                details={"reason": exc.message},
                success=False,
            )
            raise

        action = AuditAction.FEDERATED_SIGNUP if result.created else AuditAction.FEDERATED_LOGIN
        self._audit.log(
            action,
            user_id=result.user.id,
            ip_address=ip_address,
            details={"email": result.user.email, "provider": "google"},
        )
        if result.created:
            return _auth_response(result, "User created successfully", 201)
        return _auth_response(result, "Login successful", 200)

    @bearer_required
    def me(self) -> tuple[Response, int]:
        user_id = authed_request().user_id
        user = self._auth.current_user(user_id)
        logger.info(f"me: ok (user_id={user_id})")
        payload = CurrentUserDTO(user=UserSummaryDTO.from_user(user)).model_dump(by_alias=True)
        response = jsonify(payload)
        response.headers["Cache-Control"] = "no-store"
        return response, 200

    @rate_limit(limit=3, window_seconds=60.0)
    def resend_otp(self) -> tuple[Response, int]:
        try:
            dto = ResendCodeRequestDTO.model_validate(request.get_json(silent=True) or {})
        except ValidationError as exc:
            raise_validation_error(exc)

        ip_address = _get_client_ip()
        try:
            entry = self._auth.resend_code(dto.email)
        except DeliveryError:
            self._audit.log(
                AuditAction.CODE_DELIVERY_FAILED,
                ip_address=ip_address,
                details={"email": dto.email, "purpose": "resend"},
                success=False,
            )
            raise

        self._audit.log(
            AuditAction.CODE_RESENT,
            ip_address=ip_address,
            details={"email": entry.email},
        )
        payload = CodeSentDTO(
            message="New OTP sent to your email. Please check your inbox.", email=entry.email
        ).model_dump()
        return jsonify(payload), 200

    def as_blueprint(self) -> Blueprint:
        bp = Blueprint("auth", __name__, url_prefix="/api/auth")
        bp.add_url_rule("/signup", view_func=self.signup, methods=["POST"])
        bp.add_url_rule("/verify-otp", view_func=self.verify_otp, methods=["POST"])
        bp.add_url_rule("/login", view_func=self.login, methods=["POST"])
        bp.add_url_rule("/google", view_func=self.google, methods=["POST"])
        bp.add_url_rule("/me", view_func=self.me, methods=["GET"])
        bp.add_url_rule("/resend-otp", view_func=self.resend_otp, methods=["POST"])
        return bp
