# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from functools import wraps
from typing import cast

from flask import Request, request

from notes_backend.domain.users.exceptions import InvalidTokenError
from notes_backend.domain.users.repositories import CredentialIssuer
from notes_backend.shared.logging import logger


class AuthedRequest(Request):
    user_id: int


def authed_request() -> AuthedRequest:
    """Return the current request cast to include authentication attributes."""
    return cast(AuthedRequest, request)


def bearer_token() -> str:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme.lower() != "bearer":
        return ""
    return token.strip()


def bearer_required(f):
    """Guard a controller method with the controller's ``_credentials`` issuer."""

    @wraps(f)
    def inner(self, *a, **kw):
        token = bearer_token()
        if not token:
            logger.warning(f"No bearer token on {request.method} {request.path}")
            raise InvalidTokenError(message="Authorization token required")

        credentials = cast(CredentialIssuer, self._credentials)
        user_id = credentials.authenticate(token)
        authed_request().user_id = user_id
        return f(self, *a, **kw)

    return inner


__all__ = ["AuthedRequest", "authed_request", "bearer_required", "bearer_token"]
