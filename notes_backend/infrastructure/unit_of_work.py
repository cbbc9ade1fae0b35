# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Transaction scope shared by the SQLAlchemy repositories."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from contextlib import contextmanager

from sqlalchemy.orm import Session

from notes_backend.shared.logging import logger


@contextmanager
def unit_of_work_scope(factory: Callable[[], Session]) -> Iterator[Session]:
    """Yield a session that commits on clean exit and rolls back on any error.

    The error is re-raised after the rollback so repositories can translate
    it (``IntegrityError`` into a conflict, for instance).
    """
    session = factory()
    try:
        yield session
        session.commit()
    except Exception as exc:
        logger.debug(f"uow: rollback after {type(exc).__name__}")
        session.rollback()
        raise
    finally:
        session.close()


__all__ = ["unit_of_work_scope"]
