# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

from __future__ import annotations

import secrets
import threading
from dataclasses import replace
from datetime import UTC, datetime, timedelta
from threading import Lock
from typing import ClassVar

from notes_backend.domain.users.entities import PendingRegistration, RegistrationDraft
from notes_backend.domain.users.exceptions import InvalidCodeError, InvalidOrExpiredCodeError
from notes_backend.domain.users.repositories import Clock
from notes_backend.shared.logging import logger


def _utcnow() -> datetime:
    return datetime.now(UTC)


class PendingRegistrationStore:
    """Process-wide holding area for unconfirmed registrations, keyed by email.

    Every read checks expiry under the lock, so an entry is never returned
    once ``now >= expires_at`` even if the sweeper has not run yet.
    """

    TTL: ClassVar[timedelta] = timedelta(minutes=10)
    CODE_DIGITS: ClassVar[int] = 6

    def __init__(self, *, ttl: timedelta | None = None, clock: Clock | None = None) -> None:
        self._ttl = ttl or self.TTL
        self._clock = clock or _utcnow
        self._entries: dict[str, PendingRegistration] = {}
        self._lock = Lock()

    @property
    def ttl(self) -> timedelta:
        return self._ttl

    def generate_code(self) -> str:
        return f"{secrets.randbelow(10**self.CODE_DIGITS):0{self.CODE_DIGITS}d}"

    def put(self, email: str, code: str, draft: RegistrationDraft) -> PendingRegistration:
        now = self._clock()
        entry = PendingRegistration(
            email=email,
            code=code,
            draft=draft,
            created_at=now,
            expires_at=now + self._ttl,
        )
        with self._lock:
            replaced = email in self._entries
            self._entries[email] = entry
        logger.debug(
            f"pending_registrations: stored email={email} replaced={replaced} "
            f"expires_at={entry.expires_at.isoformat()}"
        )
        return entry

    def get(self, email: str) -> PendingRegistration | None:
        with self._lock:
            return self._live_entry(email, self._clock())

    def remove(self, email: str) -> None:
        with self._lock:
            self._entries.pop(email, None)

    def consume(self, email: str, code: str) -> PendingRegistration:
        """Remove and return the entry if ``code`` matches it.

        A mismatch leaves the entry untouched.
        """
        with self._lock:
            entry = self._live_entry(email, self._clock())
            if entry is None:
                raise InvalidOrExpiredCodeError()
            if not secrets.compare_digest(entry.code, code):
                raise InvalidCodeError()
            del self._entries[email]
            return entry

    def restore(self, entry: PendingRegistration) -> bool:
        """Put back a consumed entry unless a newer one took its key."""
        with self._lock:
            if entry.email in self._entries or entry.is_expired(self._clock()):
                return False
            self._entries[entry.email] = entry
            return True

    def reissue(self, email: str, code: str) -> PendingRegistration | None:
        """Swap the code of a live entry, keeping its draft and restarting its TTL."""
        now = self._clock()
        with self._lock:
            entry = self._live_entry(email, now)
            if entry is None:
                return None
            fresh = replace(entry, code=code, created_at=now, expires_at=now + self._ttl)
            self._entries[email] = fresh
            return fresh

    def purge_expired(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [email for email, entry in self._entries.items() if entry.is_expired(now)]
            for email in expired:
                del self._entries[email]
        if expired:
            logger.info(f"pending_registrations: purged {len(expired)} expired entries")
        return len(expired)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _live_entry(self, email: str, now: datetime) -> PendingRegistration | None:
        entry = self._entries.get(email)
        if entry is None:
            return None
        if entry.is_expired(now):
            del self._entries[email]
            logger.debug(f"pending_registrations: expired on read email={email}")
            return None
        return entry


class PendingRegistrationSweeper:
    """Daemon thread that periodically drops expired entries."""

    def __init__(self, store: PendingRegistrationStore, *, interval: float) -> None:
        self._store = store
        self._interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running or self._interval <= 0:
            return
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="pending-registration-sweeper", daemon=True
        )
        self._thread.start()
        logger.info(f"pending_registrations: sweeper started interval={self._interval}s")

    def stop(self, timeout: float | None = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        logger.info("pending_registrations: sweeper stopped")

    def _run(self) -> None:
        while not self._stop.wait(self._interval):
            try:
                self._store.purge_expired()
            except Exception:
                logger.exception("pending_registrations: sweep failed")


__all__ = ["PendingRegistrationStore", "PendingRegistrationSweeper"]
