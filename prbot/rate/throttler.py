"""Throttlers decide whether work for a pull request must wait."""

from __future__ import annotations

import logging
from typing import Protocol

from prbot.domain import Emitter, PullRequestID

logger = logging.getLogger(__name__)


class Throttler(Protocol):
    """Raises from `should_throttle` when the pull request must be throttled."""

    def should_throttle(self, pr: PullRequestID) -> None: ...

    def name(self) -> str: ...

    def key(self, pr: PullRequestID) -> str: ...


class StaticThrottler:
    """Always gives the same answer: raises `error` if one is set, else lets through."""

    def __init__(self, error: BaseException | None = None) -> None:
        self._error = error

    def should_throttle(self, pr: PullRequestID) -> None:
        if self._error is not None:
            raise self._error

    def name(self) -> str:
        return "mock"

    def key(self, pr: PullRequestID) -> str:
        """The key is the same for every pull request: the throttler's name."""
        return self.name()


class Facade:
    """Consults several throttlers in order and stops at the first that throttles."""

    def __init__(self, metrics: Emitter, *throttlers: Throttler) -> None:
        self._metrics = metrics
        self._throttlers = list(throttlers)

    def should_throttle(self, pr: PullRequestID) -> None:
        for throttler in self._throttlers:
            name, key = throttler.name(), throttler.key(pr)
            try:
                throttler.should_throttle(pr)
            except Exception as err:
                logger.error("throttler.%s.ShouldThrottle=true for %s: %s", name, key, err)
                tags = pr.to_tags() + [f"throttler:{name}", f"throttleKey:{key}"]
                self._metrics.emit_dist("throttledPRs", 1.0, tags)
                raise
            logger.info("throttler.%s.ShouldThrottle=false for %s", name, key)
        logger.info("throttler.%s.ShouldThrottle=false", self.name())

    def name(self) -> str:
        return "facade"

    def key(self, pr: PullRequestID) -> str:
        """The key is the same for every pull request: the facade's name."""
        return self.name()