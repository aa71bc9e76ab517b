from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from threading import Lock
from typing import Protocol

import redis

from clientdesk.core.config import settings

_LOG = logging.getLogger("clientdesk.rate_limit")


@dataclass
class RateLimitResult:
    allowed: bool
    retry_after_seconds: int
    current_value: int


@dataclass(frozen=True)
class RateLimitPolicy:
    name: str
    limit: int
    window_seconds: int
    error: str
    message: str


class RateLimiter(Protocol):
    def hit(self, key: str, *, limit: int, window_seconds: int) -> RateLimitResult:
        ...


class InMemoryRateLimiter:
    def __init__(self, prune_threshold: int = 10_000):
        self._data: dict[str, tuple[int, datetime]] = {}
        self._lock = Lock()
        self.prune_threshold = prune_threshold

    def _prune(self, now: datetime) -> None:
        expired = [key for key, (_, expires_at) in self._data.items() if expires_at <= now]
        for key in expired:
            del self._data[key]

    def hit(self, key: str, *, limit: int, window_seconds: int) -> RateLimitResult:
        now = datetime.now(timezone.utc)
        with self._lock:
            if len(self._data) >= self.prune_threshold:
                self._prune(now)
            count, expires_at = self._data.get(key, (0, now))
            if expires_at <= now:
                count = 0
                expires_at = now + timedelta(seconds=max(int(window_seconds), 1))
            count += 1
            self._data[key] = (count, expires_at)
            retry_after = max(1, int((expires_at - now).total_seconds()))
        return RateLimitResult(allowed=count <= limit, retry_after_seconds=retry_after, current_value=count)


class RedisRateLimiter:
    def __init__(self, client: redis.Redis, prefix: str = "clientdesk:rl:"):
        self.client = client
        self.prefix = prefix

    def hit(self, key: str, *, limit: int, window_seconds: int) -> RateLimitResult:
        full_key = self.prefix + key
        count = int(self.client.incr(full_key))
        if count == 1:
            self.client.expire(full_key, int(max(window_seconds, 1)))
        ttl = int(self.client.ttl(full_key))
        if ttl < 0:
            ttl = int(max(window_seconds, 1))
        return RateLimitResult(allowed=count <= limit, retry_after_seconds=ttl, current_value=count)


def general_policy() -> RateLimitPolicy:
    return RateLimitPolicy(
        name="general",
        limit=int(settings.RATE_LIMIT_MAX_REQUESTS),
        window_seconds=int(settings.RATE_LIMIT_WINDOW_SECONDS),
        error="Too many requests",
        message="Too many requests from this IP, please try again later.",
    )


def auth_policy() -> RateLimitPolicy:
    return RateLimitPolicy(
        name="auth",
        limit=int(settings.AUTH_RATE_LIMIT_MAX_REQUESTS),
        window_seconds=int(settings.AUTH_RATE_LIMIT_WINDOW_SECONDS),
        error="Too many authentication attempts",
        message="Too many login attempts from this IP, please try again later.",
    )


_cached_limiter: RateLimiter | None = None


def _build_limiter() -> RateLimiter:
    url = str(settings.REDIS_URL or "").strip()
    if not url:
        return InMemoryRateLimiter()
    try:
        client = redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=0.4,
            socket_connect_timeout=0.4,
        )
        client.ping()
        return RedisRateLimiter(client)
    except redis.RedisError:
        _LOG.warning("Redis limiter unavailable; fallback to in-memory limiter")
        return InMemoryRateLimiter()


def get_rate_limiter() -> RateLimiter:
    global _cached_limiter
    if _cached_limiter is None:
        _cached_limiter = _build_limiter()
    return _cached_limiter


def reset_rate_limiter_for_tests() -> None:
    global _cached_limiter
    _cached_limiter = None
