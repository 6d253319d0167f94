"""Per-key request rate limiting for the chat endpoint."""

import asyncio
import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from fastapi import Request

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RateLimitRecord:
    count: int
    window_start: float


@dataclass(frozen=True)
class RateLimitDecision:
    allowed: bool
    remaining: int
    reset_at: float


class RateLimiterStore(Protocol):
    def get(self, key: str) -> RateLimitRecord | None: ...

    def set(self, key: str, record: RateLimitRecord) -> None: ...


class MemoryRateLimiterStore:
    def __init__(self) -> None:
        self._records: dict[str, RateLimitRecord] = {}

    def get(self, key: str) -> RateLimitRecord | None:
        return self._records.get(key)

    def set(self, key: str, record: RateLimitRecord) -> None:
        self._records[key] = record


class RateLimiter:
    """Sliding-start windows: a window opens on the first request after expiry."""

    def __init__(
        self,
        store: RateLimiterStore,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._store = store
        self._clock = clock
        self._locks: dict[str, asyncio.Lock] = {}

    def _lock_for(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = self._locks[key] = asyncio.Lock()
        return lock

    async def allow(self, key: str, max_requests: int, window_ms: int) -> RateLimitDecision:
        window_seconds = window_ms / 1000
        async with self._lock_for(key):
            now = self._clock()
            if max_requests <= 0:
                logger.warning("Rate limit exceeded", extra={"rate_limit_key": key})
                return RateLimitDecision(allowed=False, remaining=0, reset_at=now + window_seconds)

            record = self._store.get(key)

            if record is None or now - record.window_start > window_seconds:
                record = RateLimitRecord(count=1, window_start=now)
                self._store.set(key, record)
                return RateLimitDecision(
                    allowed=True,
                    remaining=max(0, max_requests - 1),
                    reset_at=now + window_seconds,
                )

            reset_at = record.window_start + window_seconds
            if record.count >= max_requests:
                logger.warning("Rate limit exceeded", extra={"rate_limit_key": key})
                return RateLimitDecision(allowed=False, remaining=0, reset_at=reset_at)

            record = RateLimitRecord(count=record.count + 1, window_start=record.window_start)
            self._store.set(key, record)
            return RateLimitDecision(
                allowed=True,
                remaining=max(0, max_requests - record.count),
                reset_at=reset_at,
            )


def get_client_identifier(request: Request) -> str:
    """Identify the caller, preferring proxy headers over the socket peer."""
    forwarded_for = request.headers.get("X-Forwarded-For")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()
    real_ip = request.headers.get("X-Real-IP")
    if real_ip:
        return real_ip.strip()
    return request.client.host if request.client else "unknown"
