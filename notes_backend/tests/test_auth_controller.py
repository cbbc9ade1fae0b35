from __future__ import annotations

from datetime import UTC, datetime
from typing import cast
from unittest.mock import MagicMock

import pytest
from flask import Flask

from notes_backend.application.services.authentication import AuthenticationService
from notes_backend.domain.users.entities import (
    AuthProvider,
    AuthResult,
    PendingRegistration,
    RegistrationDraft,
    User,
)
from notes_backend.domain.users.exceptions import (
    DeliveryError,
    ExpiredTokenError,
    InvalidCodeError,
    InvalidCredentialsError,
    InvalidOrExpiredCodeError,
    PendingVerificationNotFoundError,
    UserAlreadyExistsError,
)
from notes_backend.infrastructure.audit import AuditLogger
from notes_backend.infrastructure.auth.jwt_credentials import JwtCredentialIssuer
from notes_backend.interfaces.http.controllers.auth_controller import AuthController
from notes_backend.shared.middleware.error_handler import configure_error_handling

CREDENTIALS = JwtCredentialIssuer("controller-test-secret-0123456789abcdef")


def _user(**overrides: object) -> User:
    fields: dict[str, object] = dict(
        id=1,
        first_name="Ann",
        last_name="Lee",
        email="ann@x.com",
        provider=AuthProvider.LOCAL,
        is_verified=True,
        password_hash="hash",
    )
    fields.update(overrides)
    return User(**fields)


def _pending(email: str = "ann@x.com") -> PendingRegistration:
    now = datetime.now(UTC)
    return PendingRegistration(
        email=email,
        code="123456",
        draft=RegistrationDraft(email=email),
        created_at=now,
        expires_at=now,
    )


@pytest.fixture()
def service() -> MagicMock:
    return MagicMock(spec=AuthenticationService)


@pytest.fixture()
def audit() -> MagicMock:
    return MagicMock(spec=AuditLogger)


@pytest.fixture()
def flask_app(service: MagicMock, audit: MagicMock) -> Flask:
    app = Flask(__name__)
    configure_error_handling(app)
    controller = AuthController(
        auth_service=cast(AuthenticationService, service),
        credentials=CREDENTIALS,
        audit=cast(AuditLogger, audit),
    )
    app.register_blueprint(controller.as_blueprint())
    return app


def test_signup_acknowledges_with_normalized_email(flask_app: Flask, service: MagicMock) -> None:
    service.register_start.return_value = _pending()

    with flask_app.test_client() as client:
        response = client.post(
            "/api/auth/signup",
            json={
                "firstName": "Ann",
                "lastName": "Lee",
                "email": " Ann@X.com ",
                "password": "secret1",
            },
        )

    assert response.status_code == 200
    assert response.get_json() == {
        "message": "OTP sent to your email. Please check your inbox.",
        "email": "ann@x.com",
    }
    service.register_start.assert_called_once_with("Ann", "Lee", "ann@x.com", "secret1", None)


def test_signup_short_password_is_400(flask_app: Flask, service: MagicMock) -> None:
    with flask_app.test_client() as client:
        response = client.post(
            "/api/auth/signup",
            json={"firstName": "Ann", "lastName": "Lee", "email": "ann@x.com", "password": "abc"},
        )

    assert response.status_code == 400
    payload = response.get_json()
    assert payload["error"] == "validation_error"
    assert payload["message"] == "Password must be at least 6 characters long"
    service.register_start.assert_not_called()


def test_signup_missing_fields_is_400(flask_app: Flask) -> None:
    with flask_app.test_client() as client:
        response = client.post("/api/auth/signup", json={})

    assert response.status_code == 400
    assert response.get_json()["message"] == "First name is required"


def test_signup_accepts_date_of_birth(flask_app: Flask, service: MagicMock) -> None:
    service.register_start.return_value = _pending()

    with flask_app.test_client() as client:
        response = client.post(
            "/api/auth/signup",
            json={
                "firstName": "Ann",
                "lastName": "Lee",
                "email": "ann@x.com",
                "password": "secret1",
                "dateOfBirth": "2000-02-29",
            },
        )

    assert response.status_code == 200
    assert service.register_start.call_args.args[4].isoformat() == "2000-02-29"


@pytest.mark.parametrize(
    ("error", "status", "code"),
    [
        (UserAlreadyExistsError(), 409, "user_already_exists"),
        (DeliveryError(), 500, "delivery_failed"),
    ],
)
def test_signup_error_mapping(
    flask_app: Flask, service: MagicMock, error: Exception, status: int, code: str
) -> None:
    service.register_start.side_effect = error

    with flask_app.test_client() as client:
        response = client.post(
            "/api/auth/signup",
            json={"firstName": "Ann", "lastName": "Lee", "email": "ann@x.com", "password": "secret1"},
        )

    assert response.status_code == status
    assert response.get_json()["error"] == code


def test_verify_otp_returns_201_with_token(
    flask_app: Flask, service: MagicMock, audit: MagicMock
) -> None:
    service.register_confirm.return_value = AuthResult(
        user=_user(), access_token="tok", created=True
    )

    with flask_app.test_client() as client:
        response = client.post("/api/auth/verify-otp", json={"email": "ann@x.com", "otp": "123456"})

    assert response.status_code == 201
    assert response.get_json() == {
        "message": "User created successfully",
        "access_token": "tok",
        "user": {"id": 1, "email": "ann@x.com", "firstName": "Ann", "lastName": "Lee"},
    }
    assert audit.log.called


@pytest.mark.parametrize("error", [InvalidOrExpiredCodeError(), InvalidCodeError()])
def test_verify_otp_failures_look_the_same(
    flask_app: Flask, service: MagicMock, error: Exception
) -> None:
    service.register_confirm.side_effect = error

    with flask_app.test_client() as client:
        response = client.post("/api/auth/verify-otp", json={"email": "ann@x.com", "otp": "123456"})

    assert response.status_code == 400
    assert response.get_json() == {
        "error": "invalid_code",
        "message": "Invalid or expired verification code",
    }


def test_verify_otp_rejects_malformed_code(flask_app: Flask, service: MagicMock) -> None:
    with flask_app.test_client() as client:
        response = client.post("/api/auth/verify-otp", json={"email": "ann@x.com", "otp": "12ab"})

    assert response.status_code == 400
    assert response.get_json()["error"] == "validation_error"
    service.register_confirm.assert_not_called()


def test_login_success_and_generic_failure(flask_app: Flask, service: MagicMock) -> None:
    service.login.return_value = AuthResult(user=_user(), access_token="tok")

    with flask_app.test_client() as client:
        ok = client.post("/api/auth/login", json={"email": "ann@x.com", "password": "secret1"})
        service.login.side_effect = InvalidCredentialsError()
        bad = client.post("/api/auth/login", json={"email": "ann@x.com", "password": "nope"})

    assert ok.status_code == 200
    assert ok.get_json()["access_token"] == "tok"
    assert bad.status_code == 401
    assert bad.get_json() == {"error": "invalid_credentials", "message": "Invalid email or password"}


def test_google_status_depends_on_creation(flask_app: Flask, service: MagicMock) -> None:
    google_user = _user(provider=AuthProvider.GOOGLE, password_hash=None)
    service.federated_login.side_effect = [
        AuthResult(user=google_user, access_token="t1", created=True),
        AuthResult(user=google_user, access_token="t2", created=False),
    ]

    with flask_app.test_client() as client:
        created = client.post("/api/auth/google", json={"externalToken": "id-token"})
        existing = client.post("/api/auth/google", json={"token": "id-token"})

    assert created.status_code == 201
    assert existing.status_code == 200
    assert service.federated_login.call_args.args == ("id-token",)


def test_google_missing_token_is_400(flask_app: Flask, service: MagicMock) -> None:
    with flask_app.test_client() as client:
        response = client.post("/api/auth/google", json={})

    assert response.status_code == 400
    assert response.get_json()["message"] == "Google token is required"
    service.federated_login.assert_not_called()


def test_me_requires_bearer_token(flask_app: Flask) -> None:
    with flask_app.test_client() as client:
        response = client.get("/api/auth/me")

    assert response.status_code == 401
    assert response.get_json()["error"] == "invalid_token"


def test_me_returns_summary(flask_app: Flask, service: MagicMock) -> None:
    service.current_user.return_value = _user(id=5)
    token = CREDENTIALS.issue(5)

    with flask_app.test_client() as client:
        response = client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert response.get_json() == {
        "user": {"id": 5, "email": "ann@x.com", "firstName": "Ann", "lastName": "Lee"}
    }
    service.current_user.assert_called_once_with(5)


def test_me_with_expired_token(flask_app: Flask, monkeypatch: pytest.MonkeyPatch) -> None:
    def expired(token: str) -> int:
        raise ExpiredTokenError()

    monkeypatch.setattr(CREDENTIALS, "authenticate", expired)

    with flask_app.test_client() as client:
        response = client.get("/api/auth/me", headers={"Authorization": "Bearer stale"})

    assert response.status_code == 401
    assert response.get_json()["error"] == "token_expired"


def test_resend_otp(flask_app: Flask, service: MagicMock) -> None:
    service.resend_code.return_value = _pending()

    with flask_app.test_client() as client:
        ok = client.post("/api/auth/resend-otp", json={"email": "ann@x.com"})
        missing = client.post("/api/auth/resend-otp", json={})
        service.resend_code.side_effect = PendingVerificationNotFoundError()
        unknown = client.post("/api/auth/resend-otp", json={"email": "nobody@x.com"})

    assert ok.status_code == 200
    assert ok.get_json()["email"] == "ann@x.com"
    assert missing.status_code == 400
    assert missing.get_json()["message"] == "Email is required"
    assert unknown.status_code == 404
    assert unknown.get_json()["error"] == "no_pending_verification"


def test_unexpected_error_hides_details(flask_app: Flask, service: MagicMock) -> None:
    service.login.side_effect = RuntimeError("connection string postgres://secret")

    with flask_app.test_client() as client:
        response = client.post("/api/auth/login", json={"email": "ann@x.com", "password": "x"})

    assert response.status_code == 500
    assert response.get_json() == {"error": "internal_error"}
