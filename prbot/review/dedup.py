"""A reviewer that avoids leaving the same review twice."""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping, Protocol

from prbot.domain import PullRequestID
from prbot.review.reviewer import ApproveOptions, Reviewer, ReviewType, parse_review_state

logger = logging.getLogger(__name__)

_LIST_REVIEWS_ERROR = "error listing reviews on PR %s: %s"


class ReviewsAPI(Protocol):
    def list_reviews(self, pr: PullRequestID) -> Iterable[Mapping[str, Any]] | None: ...


def _login(review: Mapping[str, Any]) -> str:
    user = review.get("user") or {}
    return user.get("login") or ""


class DedupReviewer:
    """Skips a review when the service account already left one of the same type."""

    def __init__(self, delegate: Reviewer, api: ReviewsAPI, service_account: str) -> None:
        self._delegate = delegate
        self._api = api
        self._service_account = service_account

    def approve(self, pr: PullRequestID, body: str, opts: ApproveOptions) -> None:
        """Approve through the delegate unless already approved by the service account."""
        if self._already_reviewed(pr, ReviewType.APPROVE):
            return
        self._delegate.approve(pr, body, opts)

    def comment(self, pr: PullRequestID, body: str) -> None:
        """Comment through the delegate unless already commented by the service account."""
        if self._already_reviewed(pr, ReviewType.COMMENT):
            return
        self._delegate.comment(pr, body)

    def request_changes(self, pr: PullRequestID, body: str) -> None:
        """Request changes through the delegate unless the service account already did."""
        if self._already_reviewed(pr, ReviewType.REQUEST_CHANGES):
            return
        self._delegate.request_changes(pr, body)

    def _already_reviewed(self, pr: PullRequestID, review_type: ReviewType) -> bool:
        try:
            reviews = self._api.list_reviews(pr)
        except Exception as err:
            logger.error(_LIST_REVIEWS_ERROR, pr.url, err)
            raise
        if self._has_review(reviews or (), review_type):
            logger.info("PR already has a review of type %s or higher %s", review_type, pr.url)
            return True
        return False

    def _has_review(self, reviews: Iterable[Mapping[str, Any]], review_type: ReviewType) -> bool:
        for review in reviews:
            if _login(review) != self._service_account:
                continue
            try:
                state = parse_review_state(review.get("state") or "")
            except ValueError:
                continue
            if state == review_type:
                return True
        return False