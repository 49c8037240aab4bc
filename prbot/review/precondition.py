"""A reviewer that checks repository preconditions before approving."""

from __future__ import annotations

import logging

from prbot.domain import PullRequestID, user_error
from prbot.review.reviewer import AUTO_MERGE_ERROR, ApproveOptions, Reviewer

logger = logging.getLogger(__name__)


class AutoMergeDisabledError(Exception):
    """The repository does not allow auto merge."""

    def __init__(self, message: str = "auto merge is disabled in repo") -> None:
        super().__init__(message)


class PreconditionReviewer:
    """Refuses to approve when auto merge is off; passes everything else through."""

    def __init__(self, delegate: Reviewer) -> None:
        self._delegate = delegate

    def approve(self, pr: PullRequestID, body: str, opts: ApproveOptions) -> None:
        """Approve through the delegate; raises a user error if auto merge is disabled."""
        if not opts.auto_merge_enabled:
            logger.error("Auto merge is disabled in repo for pr %s", pr.url)
            raise user_error(AUTO_MERGE_ERROR, AutoMergeDisabledError())
        self._delegate.approve(pr, body, opts)

    def comment(self, pr: PullRequestID, body: str) -> None:
        """Comment through the delegate without further checks."""
        self._delegate.comment(pr, body)

    def request_changes(self, pr: PullRequestID, body: str) -> None:
        """Request changes through the delegate without further checks."""
        self._delegate.request_changes(pr, body)