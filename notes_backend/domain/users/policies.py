# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Input rules shared by the HTTP layer and the use cases."""

from __future__ import annotations

import re
from datetime import date

from notes_backend.domain.exceptions import InvariantViolationError

EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[A-Za-z]{2,}$")
CODE_PATTERN = re.compile(r"^\d{6}$")

NAME_MAX_LENGTH = 50
PASSWORD_MIN_LENGTH = 6
CODE_LENGTH = 6
MIN_USER_AGE = 13


def normalize_email(email: str) -> str:
    return email.strip().lower()


def check_email(email: str) -> str:
    normalized = normalize_email(email)
    if not normalized:
        raise InvariantViolationError("Email is required", field="email")
    if not EMAIL_PATTERN.match(normalized):
        raise InvariantViolationError("Please enter a valid email", field="email")
    return normalized


def check_name(value: str, *, field: str, label: str) -> str:
    value = value.strip()
    if not value:
        raise InvariantViolationError(f"{label} is required", field=field)
    if len(value) > NAME_MAX_LENGTH:
        raise InvariantViolationError(
            f"{label} cannot exceed {NAME_MAX_LENGTH} characters", field=field
        )
    return value


def check_password(password: str) -> str:
    if len(password) < PASSWORD_MIN_LENGTH:
        raise InvariantViolationError(
            f"Password must be at least {PASSWORD_MIN_LENGTH} characters long",
            field="password",
        )
    return password


def check_code(code: str) -> str:
    if not CODE_PATTERN.match(code):
        raise InvariantViolationError(f"OTP must be {CODE_LENGTH} digits", field="otp")
    return code


def age_on(born: date, today: date) -> int:
    years = today.year - born.year
    if (today.month, today.day) < (born.month, born.day):
        years -= 1
    return years


def check_date_of_birth(born: date, *, today: date, min_age: int) -> date:
    if born > today:
        raise InvariantViolationError("Date of birth cannot be in the future", field="dateOfBirth")
    if age_on(born, today) < min_age:
        raise InvariantViolationError(
            f"You must be at least {min_age} years old to register", field="dateOfBirth"
        )
    return born
