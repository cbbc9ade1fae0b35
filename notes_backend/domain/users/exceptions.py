# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from http import HTTPStatus

from notes_backend.shared.errors.base import DomainError

# Both confirmation failures share wire code and wording so a caller cannot
# tell an expired entry from a wrong guess.
_CODE_REJECTED = "Invalid or expired verification code"


class UserAlreadyExistsError(DomainError):
    code = "user_already_exists"
    status = HTTPStatus.CONFLICT
    message = "User already exists with this email"


class InvalidOrExpiredCodeError(DomainError):
    code = "invalid_code"
    status = HTTPStatus.BAD_REQUEST
    message = _CODE_REJECTED


class InvalidCodeError(DomainError):
    code = "invalid_code"
    status = HTTPStatus.BAD_REQUEST
    message = _CODE_REJECTED


class InvalidCredentialsError(DomainError):
    code = "invalid_credentials"
    status = HTTPStatus.UNAUTHORIZED
    message = "Invalid email or password"


class InvalidTokenError(DomainError):
    code = "invalid_token"
    status = HTTPStatus.UNAUTHORIZED
    message = "Invalid token"


class ExpiredTokenError(DomainError):
    code = "token_expired"
    status = HTTPStatus.UNAUTHORIZED
    message = "Token has expired"


class DeliveryError(DomainError):
    code = "delivery_failed"
    status = HTTPStatus.INTERNAL_SERVER_ERROR
    message = "Failed to send verification email. Please try again later."


class UserNotFoundError(DomainError):
    code = "user_not_found"
    status = HTTPStatus.NOT_FOUND
    message = "User not found"


class PendingVerificationNotFoundError(DomainError):
    code = "no_pending_verification"
    status = HTTPStatus.NOT_FOUND
    message = "No pending verification for this email."


class CodeReissueThrottledError(DomainError):
    code = "code_reissue_throttled"
    status = HTTPStatus.TOO_MANY_REQUESTS
    message = "A verification code was sent recently. Please wait before requesting another."
