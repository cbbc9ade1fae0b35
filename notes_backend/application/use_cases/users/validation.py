# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from notes_backend.domain.exceptions import InvariantViolationError
from notes_backend.shared.errors.base import ValidationError


@contextmanager
def validating() -> Iterator[None]:
    """Re-raise input rule violations as request validation errors."""
    try:
        yield
    except InvariantViolationError as exc:
        context = {"fields": [exc.field]} if exc.field else None
        raise ValidationError(context=context, message=exc.message) from exc
