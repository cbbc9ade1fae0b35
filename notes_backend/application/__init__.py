# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from .services.authentication import AuthenticationService
from .services.one_time_codes import OneTimeCodeIssuer
from .services.password_hashing import WerkzeugPasswordHasher

__all__ = [
    "AuthenticationService",
    "OneTimeCodeIssuer",
    "WerkzeugPasswordHasher",
]
