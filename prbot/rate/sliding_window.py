"""Sliding window rate limiting keyed by pull request attributes."""

from __future__ import annotations

import logging
import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Protocol

from prbot.domain import PullRequestID, too_many_requests
from prbot.rate.config import Limit, LimiterConfig, format_duration

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
Keyer = Callable[[PullRequestID], str]

DEFAULT_SWEEP_INTERVAL = 5 * 60.0
DEFAULT_EPSILON = 1e-4


class LimitExhaustedError(Exception):
    """The request limit is used up; `wait` is the seconds until a request may pass."""

    def __init__(self, wait: float = 0.0) -> None:
        super().__init__("requests limit exhausted")
        self.wait = wait


class SlidingWindow:
    """Allows at most `capacity` requests per `rate` seconds, weighting the previous window."""

    def __init__(
        self,
        capacity: int,
        rate: float,
        clock: Clock = time.time,
        epsilon: float = DEFAULT_EPSILON,
    ) -> None:
        if rate <= 0:
            raise ValueError(f"sliding window rate must be positive, got {rate}")
        self._capacity = capacity
        self._rate = rate
        self._clock = clock
        self._epsilon = epsilon
        self._counts: dict[int, int] = {}
        self._lock = threading.Lock()

    def limit(self) -> float:
        """Count one request; return 0.0 if it may pass, else raise LimitExhaustedError."""
        now = self._clock()
        current = math.floor(now / self._rate)
        ttl = self._rate - (now - current * self._rate)
        with self._lock:
            curr = self._counts.get(current, 0) + 1
            prev = self._counts.get(current - 1, 0)
            self._counts = {current - 1: prev, current: curr}

        max_capacity = math.ceil(self._capacity + self._epsilon)
        curr = min(curr, max_capacity)
        prev = min(prev, max_capacity)

        total = prev * ttl / self._rate + curr
        if total - self._capacity >= self._epsilon:
            if curr <= self._capacity - 1 and prev > 0:
                wait = ttl - (self._capacity - 1 - curr) / prev * self._rate
            else:
                wait = ttl + (1 - (self._capacity - 1) / curr) * self._rate
            raise LimitExhaustedError(wait)
        return 0.0


@dataclass
class _Entry:
    limiter: SlidingWindow
    expires_at: float


class SlidingWindowRegistry:
    """Keeps one sliding window per key and drops windows that have not been used lately."""

    def __init__(
        self,
        name: str,
        clock: Clock = time.time,
        sweep_interval: float | None = DEFAULT_SWEEP_INTERVAL,
    ) -> None:
        self._name = name
        self._clock = clock
        self._entries: dict[str, _Entry] = {}
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._sweeper: threading.Thread | None = None
        if sweep_interval is not None:
            self._sweeper = threading.Thread(
                target=self._sweep, args=(sweep_interval,), name=f"{name}-sweeper", daemon=True
            )
            self._sweeper.start()

    def name(self) -> str:
        return self._name

    def get_or_create(self, key: str, limit: Limit) -> SlidingWindow:
        """Return the window for `key`, creating it from `limit` if absent; refreshes its expiry."""
        now = self._clock()
        ttl = 2 * limit.window
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = _Entry(SlidingWindow(limit.value, limit.window, self._clock), now + ttl)
                self._entries[key] = entry
            else:
                entry.expires_at = now + ttl
            return entry.limiter

    def delete_expired(self) -> int:
        """Remove windows whose expiry has passed; return how many were removed."""
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.expires_at <= now]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def close(self) -> None:
        """Stop the background sweeper."""
        self._done.set()
        if self._sweeper is not None and self._sweeper is not threading.current_thread():
            self._sweeper.join()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __enter__(self) -> SlidingWindowRegistry:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _sweep(self, interval: float) -> None:
        while not self._done.wait(interval):
            count = self.delete_expired()
            logger.info("deleted %s expired limiters from %s registry", count, self._name)


class _Limiter(Protocol):
    def limit(self) -> float: ...


class _Registry(Protocol):
    def name(self) -> str: ...

    def get_or_create(self, key: str, limit: Limit) -> _Limiter: ...


class _ConfigSource(Protocol):
    def get(self) -> LimiterConfig: ...


class SlidingWindowLimiter:
    """Throttles pull requests by the key `keyer` derives, using limits from a config store."""

    def __init__(self, keyer: Keyer, registry: _Registry, store: _ConfigSource) -> None:
        self._keyer = keyer
        self._registry = registry
        self._store = store

    def should_throttle(self, pr: PullRequestID) -> None:
        """Raise a 429 APIError when the limit for this pull request's key is exhausted."""
        key = self._keyer(pr)
        limit = self._store.get().get(key)
        limiter = self._registry.get_or_create(key, limit)
        try:
            limiter.limit()
        except LimitExhaustedError as err:
            message = (
                f"{self.name()} throttled request for key {self.key(pr)}, "
                f"try again in {format_duration(err.wait)}"
            )
            raise too_many_requests(message, err) from err

    def name(self) -> str:
        return self._registry.name()

    def key(self, pr: PullRequestID) -> str:
        return self._keyer(pr)