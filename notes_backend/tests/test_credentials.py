from __future__ import annotations

from datetime import UTC, datetime, timedelta

import jwt
import pytest

from notes_backend.domain.users.exceptions import ExpiredTokenError, InvalidTokenError
from notes_backend.infrastructure.auth.jwt_credentials import JwtCredentialIssuer

SECRET = "credential-test-secret-0123456789abcdef"


def test_issued_token_resolves_to_user_id() -> None:
    issuer = JwtCredentialIssuer(SECRET)
    token = issuer.issue(42)

    assert issuer.authenticate(token) == 42


def test_tokens_carry_seven_day_lifetime_by_default() -> None:
    issuer = JwtCredentialIssuer(SECRET)
    claims = jwt.decode(issuer.issue(7), SECRET, algorithms=["HS256"])

    assert claims["sub"] == "7"
    assert claims["exp"] - claims["iat"] == int(timedelta(days=7).total_seconds())


def test_expired_token_is_reported_as_expired() -> None:
    past = datetime.now(UTC) - timedelta(days=8)
    issuer = JwtCredentialIssuer(SECRET, clock=lambda: past)
    token = issuer.issue(1)

    with pytest.raises(ExpiredTokenError):
        JwtCredentialIssuer(SECRET).authenticate(token)


def test_issue_and_authenticate_share_the_injected_clock() -> None:
    now = datetime(2020, 1, 1, tzinfo=UTC)
    issuer = JwtCredentialIssuer(SECRET, clock=lambda: now)
    token = issuer.issue(5)

    assert issuer.authenticate(token) == 5

    now += timedelta(days=7)
    with pytest.raises(ExpiredTokenError):
        issuer.authenticate(token)


def test_token_issued_in_the_future_is_invalid() -> None:
    later = datetime.now(UTC) + timedelta(hours=1)
    token = JwtCredentialIssuer(SECRET, clock=lambda: later).issue(3)

    with pytest.raises(InvalidTokenError):
        JwtCredentialIssuer(SECRET).authenticate(token)


def test_token_signed_with_other_secret_is_invalid() -> None:
    token = JwtCredentialIssuer("another-secret-0123456789abcdefghijkl").issue(1)

    with pytest.raises(InvalidTokenError):
        JwtCredentialIssuer(SECRET).authenticate(token)


@pytest.mark.parametrize("token", ["", "not-a-jwt", "a.b.c"])
def test_malformed_tokens_are_invalid(token: str) -> None:
    with pytest.raises(InvalidTokenError):
        JwtCredentialIssuer(SECRET).authenticate(token)


def test_token_without_subject_is_invalid() -> None:
    now = int(datetime.now(UTC).timestamp())
    token = jwt.encode({"iat": now, "exp": now + 60}, SECRET, algorithm="HS256")

    with pytest.raises(InvalidTokenError):
        JwtCredentialIssuer(SECRET).authenticate(token)


def test_empty_secret_is_refused() -> None:
    with pytest.raises(ValueError):
        JwtCredentialIssuer("")
