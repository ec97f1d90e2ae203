from __future__ import annotations

from dataclasses import dataclass
from threading import Lock
import math
import time
from typing import Callable, Protocol

from fastapi import Request

from app.core.exceptions import RateLimitExceeded


class RateLimiter(Protocol):
    def check(self, key: str) -> tuple[bool, int]:
        ...

    def clear(self) -> None:
        ...


@dataclass
class _Bucket:
    tokens: float
    updated_at: float


class TokenBucketRateLimiter:
    """Per-key token bucket: ``capacity`` requests, refilled evenly over ``window_seconds``.

    One instance is created per application and injected where needed; swap it
    for a distributed implementation with the same ``check`` signature.
    """

    def __init__(self, *, capacity: int, window_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._capacity = max(1, capacity)
        self._window_seconds = max(1.0, float(window_seconds))
        self._refill_per_second = self._capacity / self._window_seconds
        self._clock = clock
        self._buckets: dict[str, _Bucket] = {}
        self._lock = Lock()
        self._last_sweep = clock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._buckets)

    def _sweep(self, now: float) -> None:
        # A refilled bucket behaves exactly like a missing one, so it can be dropped.
        idle = [
            key
            for key, bucket in self._buckets.items()
            if bucket.tokens + (now - bucket.updated_at) * self._refill_per_second >= self._capacity
        ]
        for key in idle:
            del self._buckets[key]
        self._last_sweep = now

    def check(self, key: str) -> tuple[bool, int]:
        now = self._clock()
        with self._lock:
            if now - self._last_sweep >= self._window_seconds:
                self._sweep(now)
            bucket = self._buckets.get(key)
            if bucket is None:
                bucket = _Bucket(tokens=float(self._capacity), updated_at=now)
                self._buckets[key] = bucket
            elapsed = max(0.0, now - bucket.updated_at)
            bucket.tokens = min(float(self._capacity), bucket.tokens + elapsed * self._refill_per_second)
            bucket.updated_at = now
            if bucket.tokens >= 1.0:
                bucket.tokens -= 1.0
                return True, 0
            retry_after = max(1, math.ceil((1.0 - bucket.tokens) / self._refill_per_second))
        return False, retry_after

    def clear(self) -> None:
        with self._lock:
            self._buckets.clear()


def request_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def enforce_rate_limit(limiter: RateLimiter, *, request: Request, scope: str, identity: str | None = None) -> None:
    id_part = (identity or "").strip().lower()
    key = f"{scope}|{id_part or request_ip(request)}"
    allowed, retry_after = limiter.check(key)
    if not allowed:
        raise RateLimitExceeded(scope, retry_after)
