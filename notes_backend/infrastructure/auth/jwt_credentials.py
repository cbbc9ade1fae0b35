# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Stateless bearer credentials signed with the process secret."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import jwt

from notes_backend.domain.users.exceptions import ExpiredTokenError, InvalidTokenError
from notes_backend.domain.users.repositories import Clock, CredentialIssuer
from notes_backend.shared.logging import logger


class JwtCredentialIssuer(CredentialIssuer):
    REQUIRED_CLAIMS = ("sub", "iat", "exp")

    def __init__(
        self,
        secret: str,
        *,
        lifetime: timedelta = timedelta(days=7),
        algorithm: str = "HS256",
        clock: Clock | None = None,
    ) -> None:
        if not secret:
            raise ValueError("credential signing secret must not be empty")
        self._secret = secret
        self._lifetime = lifetime
        self._algorithm = algorithm
        self._clock = clock or (lambda: datetime.now(UTC))

    def issue(self, user_id: int) -> str:
        issued_at = self._clock()
        payload = {
            "sub": str(user_id),
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self._lifetime).timestamp()),
        }
        token = jwt.encode(payload, self._secret, algorithm=self._algorithm)
        logger.debug(f"credentials: issued for user={user_id}")
        return token

    def authenticate(self, token: str) -> int:
        """Resolve a bearer token to its user id.

        Signature and claim presence are checked by PyJWT; ``exp`` and ``iat``
        are compared against the issuer's clock so that issuance and
        verification share one notion of "now".
        """
        if not token:
            raise InvalidTokenError()
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={
                    "require": list(self.REQUIRED_CLAIMS),
                    "verify_exp": False,
                    "verify_iat": False,
                },
            )
        except jwt.InvalidTokenError as exc:
            logger.debug(f"credentials: rejected token: {type(exc).__name__}")
            raise InvalidTokenError() from exc

        self._check_lifetime(payload)

        try:
            return int(payload["sub"])
        except (TypeError, ValueError) as exc:
            raise InvalidTokenError() from exc

    def _check_lifetime(self, payload: dict) -> None:
        now = self._clock().timestamp()
        expires_at, issued_at = payload["exp"], payload["iat"]
        if not isinstance(expires_at, int | float) or not isinstance(issued_at, int | float):
            raise InvalidTokenError()
        if expires_at <= now:
            raise ExpiredTokenError()
        if issued_at > now:
            logger.debug("credentials: rejected token issued in the future")
            raise InvalidTokenError()


__all__ = ["JwtCredentialIssuer"]
