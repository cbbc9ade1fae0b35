# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

import sys
from functools import lru_cache
from typing import Annotated

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

GOOGLE_CERTS_URL = "https://www.googleapis.com/oauth2/v3/certs"

_INSECURE_SECRETS = ("dev", "development", "test", "")


def _parse_bool(value: str | bool) -> bool:
    if isinstance(value, str):
        return value.lower() in ("1", "true", "yes")
    return bool(value)


class _EnvSection(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_by_name=True,
    )


class DatabaseConfig(_EnvSection):
    url: str = Field("sqlite:///notes.db", alias="DATABASE_URL")
    pool_size: int = Field(10, ge=1, alias="DATABASE_POOL_SIZE")
    max_overflow: int = Field(5, ge=0, alias="DATABASE_MAX_OVERFLOW")
    pool_timeout: float = Field(30.0, ge=0.1, alias="DATABASE_POOL_TIMEOUT")


class AuthConfig(_EnvSection):
    access_token_ttl: int = Field(7 * 24 * 60 * 60, ge=1, alias="ACCESS_TOKEN_TTL")
    jwt_algorithm: str = Field("HS256", alias="JWT_ALGORITHM")
    otp_ttl: int = Field(10 * 60, ge=1, alias="OTP_TTL")
    # 0 disables issuance throttling
    otp_reissue_interval: float = Field(0.0, ge=0.0, alias="OTP_REISSUE_INTERVAL")
    # 0 disables the background sweeper
    otp_sweep_interval: float = Field(60.0, ge=0.0, alias="OTP_SWEEP_INTERVAL")
    password_hash_method: str = Field("scrypt", alias="PASSWORD_HASH_METHOD")
    min_user_age: int = Field(13, ge=13, alias="MIN_USER_AGE")


class GoogleConfig(_EnvSection):
    client_id: str | None = Field(None, alias="GOOGLE_CLIENT_ID")
    certs_url: str = Field(GOOGLE_CERTS_URL, alias="GOOGLE_CERTS_URL")
    timeout: float = Field(5.0, gt=0, alias="GOOGLE_TIMEOUT")
    keys_refresh_interval: float = Field(60.0, ge=0, alias="GOOGLE_KEYS_REFRESH_INTERVAL")


class EmailConfig(_EnvSection):
    backend: str = Field("console", alias="EMAIL_BACKEND")
    app_name: str = Field("Take All Notes", alias="APP_NAME")
    smtp_host: str = Field("smtp.gmail.com", alias="SMTP_HOST")
    smtp_port: int = Field(587, ge=1, alias="SMTP_PORT")
    smtp_user: str = Field("", alias="SMTP_USER")
    smtp_password: str = Field("", alias="SMTP_PASSWORD")
    smtp_from: str = Field("", alias="SMTP_FROM")
    smtp_use_tls: bool = Field(True, alias="SMTP_USE_TLS")
    smtp_timeout: float = Field(10.0, gt=0, alias="SMTP_TIMEOUT")

    @field_validator("backend", mode="after")
    @classmethod
    def _check_backend(cls, value: str) -> str:
        value = value.lower()
        if value not in ("smtp", "console"):
            raise ValueError("EMAIL_BACKEND must be 'smtp' or 'console'")
        return value

    @field_validator("smtp_use_tls", mode="before")
    @classmethod
    def _parse_tls(cls, value: str | bool) -> bool:
        return _parse_bool(value)

    @property
    def sender(self) -> str:
        return self.smtp_from or self.smtp_user


class SecurityConfig(_EnvSection):
    # CORS
    allowed_origins: Annotated[list[str], NoDecode] = Field(["*"], alias="ALLOWED_ORIGINS")

    # Rate limiting
    enable_rate_limit: bool = Field(True, alias="ENABLE_RATE_LIMIT")
    rate_limit_requests: int = Field(10, alias="RL_LIMIT")
    rate_limit_window: float = Field(60.0, alias="RL_WINDOW")

    # HSTS
    enable_hsts: bool = Field(False, alias="ENABLE_HSTS")

    @field_validator("allowed_origins", mode="before")
    @classmethod
    def _parse_origins(cls, value: str | list[str]) -> list[str]:
        if isinstance(value, str):
            return [origin.strip() for origin in value.split(",") if origin.strip()]
        return value

    @field_validator("enable_rate_limit", "enable_hsts", mode="before")
    @classmethod
    def _parse_flags(cls, value: str | bool) -> bool:
        return _parse_bool(value)


class AppConfig(BaseSettings):
    app_env: str = Field("development", alias="APP_ENV")
    secret_key: str = Field("dev", alias="SECRET_KEY")
    debug_logging: bool = Field(False, alias="DEBUG_LOGGING")

    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    auth: AuthConfig = Field(default_factory=AuthConfig)
    google: GoogleConfig = Field(default_factory=GoogleConfig)
    email: EmailConfig = Field(default_factory=EmailConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        validate_assignment=True,
    )

    @field_validator("debug_logging", mode="before")
    @classmethod
    def _parse_debug_logging(cls, value: str | bool) -> bool:
        return _parse_bool(value)

    @model_validator(mode="after")
    def _validate_production_settings(self) -> "AppConfig":
        if not self.is_production():
            return self

        if self.secret_key in _INSECURE_SECRETS:
            print(
                "\n❌ CRITICAL SECURITY ERROR: Insecure SECRET_KEY detected in production!\n"
                "   SECRET_KEY signs every access token and must be a strong random value.\n"
                "   Generate one with: python -c \"import secrets; print(secrets.token_urlsafe(32))\"\n",
                file=sys.stderr,
            )
            sys.exit(1)

        warnings = []
        if not self.google.client_id:
            warnings.append("⚠️  GOOGLE_CLIENT_ID is not set, Google sign-in will reject every token")
        if self.email.backend == "console":
            warnings.append("⚠️  EMAIL_BACKEND=console, verification codes are not delivered")
        if "*" in self.security.allowed_origins:
            warnings.append("⚠️  CORS allows wildcard (*) origins")
        if not self.security.enable_hsts:
            warnings.append("⚠️  HSTS is DISABLED (recommended for HTTPS)")

        if warnings:
            print("\n⚠️  PRODUCTION SECURITY WARNINGS:", file=sys.stderr)
            for warning in warnings:
                print(f"   {warning}", file=sys.stderr)
            print("", file=sys.stderr)

        return self

    def is_production(self) -> bool:
        return self.app_env.lower() in ("production", "prod")


@lru_cache(maxsize=1)
def load_config() -> AppConfig:
    return AppConfig()  # type: ignore[call-arg]


__all__ = [
    "AppConfig",
    "AuthConfig",
    "DatabaseConfig",
    "EmailConfig",
    "GoogleConfig",
    "SecurityConfig",
    "load_config",
]
