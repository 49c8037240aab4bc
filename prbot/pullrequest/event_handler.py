"""Evaluates pull request events against policy and leaves the review it decides on."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Protocol

from prbot.domain import PullRequestID
from prbot.review.reviewer import ApproveOptions, MergeMethod, Reviewer, ReviewType

logger = logging.getLogger(__name__)

EVENT_NAME = "pull_request"


class _Evaluator(Protocol):
    def evaluate(self, policy_input: Mapping[str, Any]) -> Mapping[str, Any]: ...


class _Emitter(Protocol):
    def emit_dist(self, name: str, value: float, tags: list[str]) -> None: ...


def _section(mapping: Mapping[str, Any] | None, key: str) -> Mapping[str, Any]:
    return (mapping or {}).get(key) or {}


def _base_repo(event: Mapping[str, Any]) -> Mapping[str, Any]:
    return _section(_section(_section(event, "pull_request"), "base"), "repo")


def to_input(event: Mapping[str, Any]) -> dict[str, Any]:
    """The document a pull request event is evaluated as by the policy engine."""
    return {
        "event": EVENT_NAME,
        "action": event.get("action") or "",
        "pull_request": event.get("pull_request"),
        "repository": event.get("repository"),
        "organization": event.get("organization"),
    }


def merge_method(event: Mapping[str, Any]) -> MergeMethod:
    """Rebase when allowed and the PR changes files, else squash when allowed, else merge.

    Rebasing an empty PR creates no new commit, so empty PRs never rebase.
    """
    repo = _base_repo(event)
    changed_files = _section(event, "pull_request").get("changed_files") or 0
    if repo.get("allow_rebase_merge") and changed_files > 0:
        return MergeMethod.REBASE
    if repo.get("allow_squash_merge"):
        return MergeMethod.SQUASH
    return MergeMethod.MERGE


def _review_type(value: Any) -> ReviewType | None:
    try:
        return ReviewType(value)
    except ValueError:
        return None


class EventHandler:
    """Asks the evaluator for a decision on an event and hands it to the reviewer."""

    def __init__(self, evaluator: _Evaluator, reviewer: Reviewer, metrics: _Emitter) -> None:
        self._evaluator = evaluator
        self._reviewer = reviewer
        self._metrics = metrics

    def eval_and_review(self, pr: PullRequestID, event: Mapping[str, Any]) -> None:
        """Evaluate `event` and approve, comment or request changes as decided.

        Errors from the evaluator or reviewer propagate.
        """
        tags = pr.to_tags()
        try:
            result = self._evaluator.evaluate(to_input(event))
        except Exception as err:
            logger.error("opa evaluation failed: %s", err)
            self._metrics.emit_dist("opa.evaluator.errors", 1.0, tags)
            raise
        logger.info("opa evaluation complete, decision=%s", result)

        if not result.get("track"):
            logger.info("track=false, skipping review")
            return

        review = result.get("review") or {}
        body = review.get("body") or ""
        review_type = _review_type(review.get("type"))

        if review_type is ReviewType.APPROVE:
            options = ApproveOptions(
                auto_merge_enabled=bool(_base_repo(event).get("allow_auto_merge")),
                default_branch=_section(event, "repository").get("default_branch") or "",
                merge_method=merge_method(event),
            )
            self._reviewer.approve(pr, body, options)
        elif review_type is ReviewType.REQUEST_CHANGES:
            self._reviewer.request_changes(pr, body)
        elif review_type is ReviewType.COMMENT:
            self._reviewer.comment(pr, body)
        else:
            logger.info("skipping review")