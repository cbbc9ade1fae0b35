# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

from typing import Any

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, scoped_session, sessionmaker
from sqlalchemy.pool import StaticPool

from notes_backend.shared.config import load_config
from notes_backend.shared.config.settings import DatabaseConfig
from notes_backend.shared.logging import logger

_MEMORY_URLS = ("sqlite://", "sqlite:///:memory:")


class Base(DeclarativeBase):
    pass


def build_engine(config: DatabaseConfig) -> Engine:
    kwargs: dict[str, Any] = {"echo": False, "pool_pre_ping": True}
    if config.url.startswith("sqlite"):
        kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": int(config.pool_timeout),
        }
    if config.url in _MEMORY_URLS:
        # one shared connection, otherwise every checkout sees an empty database
        kwargs["poolclass"] = StaticPool
    else:
        kwargs.update(
            pool_size=config.pool_size,
            max_overflow=config.max_overflow,
            pool_timeout=config.pool_timeout,
        )
    return create_engine(config.url, **kwargs)


ENGINE: Engine = build_engine(load_config().database)


SessionLocal = scoped_session(
    sessionmaker(bind=ENGINE, autoflush=False, autocommit=False, expire_on_commit=False)
)


def init_db(engine: Engine | None = None) -> None:
    from notes_backend.infrastructure.db import models  # noqa: F401

    Base.metadata.create_all(bind=engine or ENGINE)
    logger.info("Database schema ensured")
