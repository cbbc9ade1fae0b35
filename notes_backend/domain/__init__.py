# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .exceptions import InvariantViolation, InvariantViolationError
from .users.entities import (
    AuthProvider,
    AuthResult,
    FederatedIdentity,
    PendingRegistration,
    RegistrationDraft,
    User,
)

__all__ = [
    "AuthProvider",
    "AuthResult",
    "FederatedIdentity",
    "InvariantViolation",
    "InvariantViolationError",
    "PendingRegistration",
    "RegistrationDraft",
    "User",
]
