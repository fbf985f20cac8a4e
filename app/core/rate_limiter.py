"""
Per-identity rate limiting for the OTP and verification flows.

Two counter types share one store:
- attempt windows: at most N calls per fixed window, reset once the window lapses
- daily quotas: at most N calls per calendar day (UTC)

Counters live in Redis so every service instance sees the same numbers. The
memory backend keeps them in a process-local dict for development and tests.
"""

import logging
import threading
import time
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

import redis

from app.core.config import Settings
from app.core.errors import AppError, BadRequestError

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 24 * 60 * 60


class CounterStore:
    """Fixed-window counters keyed by string."""

    def get(self, key: str) -> Optional[int]:
        raise NotImplementedError

    def incr(self, key: str, window_seconds: int) -> int:
        """
        Add one and return the new count. A missing or lapsed counter is
        recreated at 1 expiring after `window_seconds`, in the same step.
        """
        raise NotImplementedError

    def ttl(self, key: str) -> int:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def ping(self) -> bool:
        return True


class MemoryCounterStore(CounterStore):
    """Process-local counters. Not shared between workers or instances."""

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._counters: Dict[str, List[float]] = {}
        self._lock = threading.Lock()

    def _live(self, key: str) -> Optional[List[float]]:
        entry = self._counters.get(key)
        if entry is not None and entry[1] <= self._clock():
            del self._counters[key]
            return None
        return entry

    def get(self, key: str) -> Optional[int]:
        with self._lock:
            entry = self._live(key)
            return int(entry[0]) if entry else None

    def incr(self, key: str, window_seconds: int) -> int:
        with self._lock:
            entry = self._live(key)
            if entry is None:
                self._counters[key] = [1, self._clock() + window_seconds]
                return 1
            entry[0] += 1
            return int(entry[0])

    def ttl(self, key: str) -> int:
        with self._lock:
            entry = self._live(key)
            if entry is None:
                return 0
            return max(0, int(round(entry[1] - self._clock())))

    def delete(self, key: str) -> None:
        with self._lock:
            self._counters.pop(key, None)


class RedisCounterStore(CounterStore):
    """Counters shared through Redis, expiring with key TTLs."""

    def __init__(self, client: redis.Redis):
        self.redis_client = client

    @classmethod
    def from_settings(cls, settings: Settings) -> "RedisCounterStore":
        return cls(redis.Redis(
            host=settings.REDIS_HOST,
            port=settings.REDIS_PORT,
            db=settings.REDIS_DB,
            decode_responses=True,
            socket_connect_timeout=2,
            socket_timeout=2,
        ))

    def get(self, key: str) -> Optional[int]:
        value = self.redis_client.get(key)
        return int(value) if value is not None else None

    def incr(self, key: str, window_seconds: int) -> int:
        # SET NX EX seeds the key with its TTL; INCR alone would create one that never expires
        pipe = self.redis_client.pipeline(transaction=True)
        pipe.set(key, 0, ex=window_seconds, nx=True)
        pipe.incr(key)
        _, count = pipe.execute()
        return int(count)

    def ttl(self, key: str) -> int:
        return max(0, int(self.redis_client.ttl(key)))

    def delete(self, key: str) -> None:
        self.redis_client.delete(key)

    def ping(self) -> bool:
        return bool(self.redis_client.ping())


class RateLimiter:
    """
    Reset-on-window-expiry counters. No burst tolerance, no token bucket.

    If the store is unreachable the check fails open and logs a warning.
    """

    def __init__(self, store: CounterStore, key_prefix: str = "ratelimit"):
        self.store = store
        self.key_prefix = key_prefix

    def _key(self, *parts: str) -> str:
        return ":".join((self.key_prefix,) + parts)

    def _hit(self, key: str, limit: int, window_seconds: int, exceeded: Callable[[int], AppError]) -> None:
        try:
            current = self.store.get(key)
            if current is not None and current >= limit:
                raise exceeded(self.store.ttl(key))
            self.store.incr(key, window_seconds)
        except redis.RedisError as e:
            logger.warning(f"Rate limiter store error, allowing request: {e}")

    def check_attempt_limit(self, identity: str, max_attempts: int, window_seconds: int, scope: str = "attempts") -> None:
        """
        Allow at most `max_attempts` calls per `window_seconds` for an identity.

        Raises:
            BadRequestError: limit reached, message carries the seconds left in the window
        """
        self._hit(
            self._key(scope, identity),
            max_attempts,
            window_seconds,
            lambda ttl: BadRequestError(f"Too many attempts. Please try again in {ttl} seconds."),
        )

    def check_daily_limit(self, identity: str, max_requests: int, scope: str = "daily", message: Optional[str] = None) -> None:
        """
        Allow at most `max_requests` calls per UTC calendar day for an identity.

        Raises:
            BadRequestError: quota for today is used up
        """
        today = datetime.now(timezone.utc).strftime("%Y-%m-%d")
        error_message = message or "Daily OTP request limit exceeded. Please try again tomorrow."
        self._hit(
            self._key(scope, identity, today),
            max_requests,
            SECONDS_PER_DAY,
            lambda ttl: BadRequestError(error_message),
        )

    def check_rate_limit(self, key: str, max_requests: int, window_seconds: int, error: Callable[[int], AppError]) -> None:
        """Generic fixed window; `error` builds the exception from the seconds left."""
        self._hit(self._key(key), max_requests, window_seconds, error)

    def clear_attempts(self, identity: str, scope: str = "attempts") -> None:
        try:
            self.store.delete(self._key(scope, identity))
        except redis.RedisError as e:
            logger.warning(f"Rate limiter reset error: {e}")

    def is_healthy(self) -> bool:
        try:
            return self.store.ping()
        except redis.RedisError:
            return False


def build_rate_limiter(settings: Settings) -> RateLimiter:
    if settings.RATE_LIMIT_BACKEND == "memory":
        logger.info("Using process-local rate limit counters")
        return RateLimiter(MemoryCounterStore())
    return RateLimiter(RedisCounterStore.from_settings(settings))
