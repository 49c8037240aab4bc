"""Reviews pull requests on GitHub: approve with auto merge, comment, or request changes."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from prbot.domain import APIError, PullRequestID, service_fault, user_error

logger = logging.getLogger(__name__)

AUTO_MERGE_ERROR = "Error enabling auto merge on PR"

_AUTO_MERGE_NOT_ALLOWED = "pull request auto merge is not allowed"
_NO_PROTECTION_MARKERS = (
    "pull request is in has_hooks status",
    "pull request is in clean status",
)


class ReviewType(str, Enum):
    """The kind of review the bot leaves on a pull request."""

    APPROVE = "approve"
    REQUEST_CHANGES = "request_changes"
    COMMENT = "comment"
    SKIP = "skip"

    def __str__(self) -> str:
        return self.value


_REVIEW_STATES = {
    "approved": ReviewType.APPROVE,
    "commented": ReviewType.COMMENT,
    "changes_requested": ReviewType.REQUEST_CHANGES,
}


def parse_review_state(state: str) -> ReviewType:
    """Map a GitHub review state such as "APPROVED" to a review type.

    Raises ValueError for states that have no matching review type.
    """
    try:
        return _REVIEW_STATES[state.lower()]
    except KeyError:
        raise ValueError(f"unknown review state {state!r}") from None


class MergeMethod(str, Enum):
    """How a pull request is merged once auto merge fires."""

    MERGE = "MERGE"
    SQUASH = "SQUASH"
    REBASE = "REBASE"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class ApproveOptions:
    """Repository settings that matter when approving a pull request."""

    auto_merge_enabled: bool = False
    default_branch: str = ""
    merge_method: MergeMethod | None = None


class Reviewer(Protocol):
    """Leaves reviews on pull requests; every method raises on failure."""

    def approve(self, pr: PullRequestID, body: str, opts: ApproveOptions) -> None: ...

    def request_changes(self, pr: PullRequestID, body: str) -> None: ...

    def comment(self, pr: PullRequestID, body: str) -> None: ...


class GitHubAPI(Protocol):
    def enable_auto_merge(self, pr: PullRequestID, method: MergeMethod | None) -> None: ...

    def add_review(self, pr: PullRequestID, body: str, event: ReviewType) -> None: ...


class _Emitter(Protocol):
    def emit_dist(self, name: str, value: float, tags: list[str]) -> None: ...


class GitHubReviewer:
    """Reviews pull requests directly through the GitHub API and records metrics."""

    def __init__(self, api: GitHubAPI, metrics: _Emitter) -> None:
        self._api = api
        self._metrics = metrics

    def approve(self, pr: PullRequestID, body: str, opts: ApproveOptions) -> None:
        """Enable auto merge, then approve; raises APIError on failure."""
        try:
            self._api.enable_auto_merge(pr, opts.merge_method)
        except Exception as err:
            logger.error("error enabling auto merge on PR %s: %s", pr.url, err)
            raise self._auto_merge_error(pr, err) from err
        logger.info("enabled auto merge on PR")

        try:
            self._api.add_review(pr, body, ReviewType.APPROVE)
        except Exception as err:
            logger.error("error approving PR: %s", err)
            raise service_fault("Error approving PR", err) from err

        method = opts.merge_method.value if opts.merge_method is not None else ""
        tags = pr.to_tags()
        tags.append(f"mergeMethod:{method}")
        tags.append("reviewType:approve")
        self._metrics.emit_dist("reviewedPRs", 1.0, tags)
        self._metrics.emit_dist("approvedPRs", 1.0, tags)
        logger.info("reviewed PR reviewType:approve")

    def comment(self, pr: PullRequestID, body: str) -> None:
        """Leave a comment review; raises APIError on failure."""
        self._review(pr, body, ReviewType.COMMENT, "comment", "commentedPRs")

    def request_changes(self, pr: PullRequestID, body: str) -> None:
        """Leave a review requesting changes; raises APIError on failure."""
        self._review(
            pr,
            body,
            ReviewType.REQUEST_CHANGES,
            "changes_requested",
            "changesRequestedPRs",
            tag_type="request_changes",
        )

    def _review(
        self,
        pr: PullRequestID,
        body: str,
        event: ReviewType,
        label: str,
        metric: str,
        tag_type: str | None = None,
    ) -> None:
        try:
            self._api.add_review(pr, body, event)
        except Exception as err:
            logger.error("error reviewing PR with reviewType:%s %s: %s", label, pr.url, err)
            raise service_fault(f"error reviewing PR with reviewType:{label}", err) from err
        tag_type = tag_type or label
        tags = pr.to_tags()
        tags.append(f"reviewType:{tag_type}")
        self._metrics.emit_dist("reviewedPRs", 1.0, tags)
        self._metrics.emit_dist(metric, 1.0, tags)
        logger.info("reviewed PR reviewType:%s", tag_type)

    def _auto_merge_error(self, pr: PullRequestID, err: Exception) -> APIError:
        message = str(err).lower()
        if _AUTO_MERGE_NOT_ALLOWED in message:
            self._metrics.emit_dist("autoMergeDisabled", 1.0, pr.to_tags())
            return user_error(AUTO_MERGE_ERROR, err)
        if any(marker in message for marker in _NO_PROTECTION_MARKERS):
            friendly = RuntimeError(
                f"enable atleast one branch protection rule on the default branch : {err}"
            )
            friendly.__cause__ = err
            self._metrics.emit_dist("noBranchProtectionRules", 1.0, pr.to_tags())
            return user_error(AUTO_MERGE_ERROR, friendly)
        return service_fault(AUTO_MERGE_ERROR, err)