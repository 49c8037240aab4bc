"""A reviewer that consults a throttler before approving."""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from prbot.domain import APIError, PullRequestID
from prbot.rate.throttler import Throttler
from prbot.review.reviewer import ApproveOptions, Reviewer

logger = logging.getLogger(__name__)


class RateLimitedReviewer:
    """Throttles approvals; comments and change requests pass straight through."""

    def __init__(self, delegate: Reviewer, api: Any, throttler: Throttler) -> None:
        self._delegate = delegate
        self._api = api
        self._throttler = throttler

    def approve(self, pr: PullRequestID, body: str, opts: ApproveOptions) -> None:
        """Approve through the delegate unless the throttler raises; its error propagates."""
        try:
            self._throttler.should_throttle(pr)
        except APIError as err:
            if err.status_code == HTTPStatus.TOO_MANY_REQUESTS:
                logger.error("request throttled for PR %s: %s", pr.url, err)
            else:
                logger.error("error from throttler for PR %s: %s", pr.url, err)
            raise
        except Exception as err:
            logger.error("error from throttler for PR %s: %s", pr.url, err)
            raise
        self._delegate.approve(pr, body, opts)

    def comment(self, pr: PullRequestID, body: str) -> None:
        self._delegate.comment(pr, body)

    def request_changes(self, pr: PullRequestID, body: str) -> None:
        self._delegate.request_changes(pr, body)