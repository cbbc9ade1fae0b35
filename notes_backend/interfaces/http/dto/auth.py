from __future__ import annotations

from datetime import date

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
)
from pydantic_core import PydanticCustomError

from notes_backend.domain.exceptions import InvariantViolationError
from notes_backend.domain.users.entities import User
from notes_backend.domain.users.policies import (
    check_code,
    check_email,
    check_name,
    check_password,
    normalize_email,
)
from notes_backend.shared.errors.validation_types import ValidationErrorType


class _RequestDTO(BaseModel):
    model_config = ConfigDict(validate_by_name=True, validate_by_alias=True)


def _required(value: str, message: str) -> str:
    if not value:
        raise PydanticCustomError(ValidationErrorType.MISSING, message, {})
    return value


class SignupRequestDTO(_RequestDTO):
    first_name: str = Field("", alias="firstName", validate_default=True)
    last_name: str = Field("", alias="lastName", validate_default=True)
    email: str = Field("", validate_default=True)
    password: str = Field("", validate_default=True)
    date_of_birth: date | None = Field(None, alias="dateOfBirth")

    @field_validator("first_name", "last_name")
    @classmethod
    def validate_name(cls, value: str, info: ValidationInfo) -> str:
        if info.field_name == "first_name":
            field, label = "firstName", "First name"
        else:
            field, label = "lastName", "Last name"
        try:
            return check_name(value, field=field, label=label)
        except InvariantViolationError as exc:
            kind = (
                ValidationErrorType.MISSING if not value.strip() else ValidationErrorType.NAME_INVALID
            )
            raise PydanticCustomError(kind, exc.message, {}) from exc

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        _required(value, "Email is required")
        try:
            return check_email(value)
        except InvariantViolationError as exc:
            raise PydanticCustomError(ValidationErrorType.EMAIL_INVALID, exc.message, {}) from exc

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        _required(value, "Password is required")
        try:
            return check_password(value)
        except InvariantViolationError as exc:
            raise PydanticCustomError(
                ValidationErrorType.PASSWORD_TOO_SHORT, exc.message, {"min_length": 6}
            ) from exc


class VerifyOtpRequestDTO(_RequestDTO):
    email: str = Field("", validate_default=True)
    otp: str = Field("", validate_default=True)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return normalize_email(_required(value, "Email and OTP are required"))

    @field_validator("otp", mode="before")
    @classmethod
    def validate_otp(cls, value: object) -> str:
        # some clients send the code as a number
        text = "" if value is None else str(value).strip()
        _required(text, "Email and OTP are required")
        try:
            return check_code(text)
        except InvariantViolationError as exc:
            raise PydanticCustomError(ValidationErrorType.CODE_FORMAT, exc.message, {}) from exc


class LoginRequestDTO(_RequestDTO):
    # no strength check on login
    email: str = Field("", validate_default=True)
    password: str = Field("", validate_default=True)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return normalize_email(_required(value, "Email and password are required"))

    @field_validator("password")
    @classmethod
    def validate_password(cls, value: str) -> str:
        return _required(value, "Email and password are required")


class FederatedLoginRequestDTO(_RequestDTO):
    external_token: str = Field(
        "",
        validation_alias=AliasChoices("externalToken", "token", "external_token"),
        validate_default=True,
    )

    @field_validator("external_token")
    @classmethod
    def validate_token(cls, value: str) -> str:
        return _required(value.strip(), "Google token is required")


class ResendCodeRequestDTO(_RequestDTO):
    email: str = Field("", validate_default=True)

    @field_validator("email")
    @classmethod
    def validate_email(cls, value: str) -> str:
        return normalize_email(_required(value, "Email is required"))


class UserSummaryDTO(BaseModel):
    model_config = ConfigDict(serialize_by_alias=True)

    id: int
    email: str
    first_name: str = Field(serialization_alias="firstName")
    last_name: str = Field(serialization_alias="lastName")

    @classmethod
    def from_user(cls, user: User) -> "UserSummaryDTO":
        return cls(
            id=user.id,
            email=user.email,
            first_name=user.first_name,
            last_name=user.last_name,
        )


class AuthResponseDTO(BaseModel):
    message: str
    access_token: str
    user: UserSummaryDTO


class CurrentUserDTO(BaseModel):
    user: UserSummaryDTO


class CodeSentDTO(BaseModel):
    message: str
    email: str
