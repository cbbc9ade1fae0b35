# SPDX-License-Identifier: Apache-2.0
# Copyright 2025 Vova Orig

"""Per-client sliding window limiter for the public auth endpoints.

State lives in the worker process; separate processes count separately.
"""

from __future__ import annotations

import time
from collections import deque
from collections.abc import Callable
from functools import wraps
from http import HTTPStatus
from threading import Lock

from flask import Request, request

from notes_backend.shared.config import load_config
from notes_backend.shared.errors.base import AppError
from notes_backend.shared.logging import logger


class RateLimitExceededError(AppError):
    def __init__(self, retry_after: float) -> None:
        super().__init__(
            code="rate_limited",
            status=HTTPStatus.TOO_MANY_REQUESTS,
            context={"retry_after_seconds": round(retry_after, 1)},
            message="Too many requests. Please try again later.",
        )


class InMemoryRateLimiter:
    def __init__(
        self, limit: int, window_seconds: float, *, clock: Callable[[], float] = time.monotonic
    ) -> None:
        self._limit = max(1, int(limit))
        self._window = max(0.1, float(window_seconds))
        self._clock = clock
        self._hits: dict[str, deque[float]] = {}
        self._last_prune = clock()
        self._lock = Lock()

    def hit(self, key: str) -> float:
        """Record a request for ``key``; return 0 if allowed, else seconds to wait."""
        now = self._clock()
        with self._lock:
            if now - self._last_prune >= self._window:
                self._prune(now)
            hits = self._hits.setdefault(key, deque())
            while hits and now - hits[0] >= self._window:
                hits.popleft()
            if len(hits) >= self._limit:
                return self._window - (now - hits[0])
            hits.append(now)
            return 0.0

    def __len__(self) -> int:
        with self._lock:
            return len(self._hits)

    def _prune(self, now: float) -> None:
        # drop clients whose newest hit has left the window
        idle = [
            key for key, hits in self._hits.items() if not hits or now - hits[-1] >= self._window
        ]
        for key in idle:
            del self._hits[key]
        self._last_prune = now


def _client_key(req: Request) -> str:
    forwarded = req.headers.get("X-Forwarded-For", "").split(",")[0].strip()
    return forwarded or (req.remote_addr or "unknown")


def rate_limit(limit: int | None = None, window_seconds: float | None = None):
    security = load_config().security
    limiter = InMemoryRateLimiter(
        limit or security.rate_limit_requests,
        window_seconds or security.rate_limit_window,
    )

    def decorator(f: Callable):
        if not security.enable_rate_limit:
            return f

        @wraps(f)
        def wrapper(*args, **kwargs):
            key = f"{request.path}:{_client_key(request)}"
            retry_after = limiter.hit(key)
            if retry_after:
                logger.warning(f"rate_limit: {request.path} blocked for {_client_key(request)}")
                raise RateLimitExceededError(retry_after)
            return f(*args, **kwargs)

        return wrapper

    return decorator


__all__ = ["InMemoryRateLimiter", "RateLimitExceededError", "rate_limit"]
