# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Redaction applied to every log record before it reaches a sink."""

from __future__ import annotations

import re
from typing import Any

_REDACTED = "***REDACTED***"

_RULES: list[tuple[re.Pattern[str], str]] = [
    (re.compile(r"(secret[_-]?key\s*[:=]\s*['\"]?)([\w\-]{8,})(['\"]?)", re.I), rf"\1{_REDACTED}\3"),
    (re.compile(r"(smtp[_-]?password\s*[:=]\s*['\"]?)([^'\"\s]+)(['\"]?)", re.I), rf"\1{_REDACTED}\3"),
    # bearer credentials and Google ID tokens are both JWTs
    (re.compile(r"eyJ[\w\-]+\.[\w\-]+\.[\w\-]+"), "***JWT***"),
    (re.compile(r"(bearer\s+)([\w\-\.]{20,})", re.I), rf"\1{_REDACTED}"),
    (re.compile(r"((?:access_|external)?token\s*[:=]\s*['\"]?)([\w\-\.]{20,})(['\"]?)", re.I), rf"\1{_REDACTED}\3"),
    (re.compile(r"(password\s*[:=]\s*['\"]?)([^'\"\s,}]+)(['\"]?)", re.I), rf"\1{_REDACTED}\3"),
    (re.compile(r"((?:otp|code)['\"]?\s*[:=]\s*['\"]?)(\d{6})(['\"]?)", re.I), r"\1******\3"),
    (re.compile(r"(postgres(?:ql)?|mysql)(\+\w+)?://([^:/@]+):([^@]+)@"), rf"\1\2://\3:{_REDACTED}@"),
    # keep the domain so delivery problems can still be grouped
    (re.compile(r"([\w.%+-]+)@([\w.-]+\.[A-Za-z]{2,})"), r"***@\2"),
    (re.compile(r"(authorization\s*:\s*['\"]?)([^'\"]{10,})(['\"]?)", re.I), rf"\1{_REDACTED}\3"),
]


def sanitize_message(message: str) -> str:
    for pattern, replacement in _RULES:
        message = pattern.sub(replacement, message)
    return message


def sanitize_record(record: dict[str, Any]) -> bool:
    if "message" in record:
        record["message"] = sanitize_message(record["message"])
    return True


__all__ = ["sanitize_message", "sanitize_record"]
