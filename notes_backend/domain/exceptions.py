# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations


class InvariantViolationError(ValueError):
    """Raised when a value breaks an account rule.

    ``field`` names the offending request field in the casing clients send
    (``firstName``, ``dateOfBirth``), so it can be echoed back as-is.
    """

    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.field = field

    @property
    def message(self) -> str:
        return str(self.args[0])

    def __str__(self) -> str:
        if self.field:
            return f"{self.field}: {self.message}"
        return self.message


InvariantViolation = InvariantViolationError
