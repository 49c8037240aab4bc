"""Routes incoming pull request webhook events to the event handler."""

from __future__ import annotations

import logging
from typing import Any, Mapping, Protocol

from prbot.domain import APIError, PullRequestID, invalid_request
from prbot.pullrequest.event_handler import EVENT_NAME

logger = logging.getLogger(__name__)

_PARSE_ERROR = "error parsing webhook event"
_MISMATCHED_EVENT = "expected pull_request event"
_ACTION_NOT_FOUND = "event action was empty or nil"
_PR_NOT_FOUND = "event.pull_request was nil"

_OPENED = "opened"
_HANDLED_ACTIONS = frozenset(
    {
        _OPENED,
        "reopened",
        "edited",
        "labeled",
        "unlabeled",
        "review_requested",
        "review_request_removed",
        "assigned",
        "unassigned",
        "synchronize",
    }
)
_SERVICE_ACCOUNT_PREFIX = "svc-"


class _Filter(Protocol):
    def should_handle(self, pr: PullRequestID) -> bool: ...


class _Handler(Protocol):
    def eval_and_review(self, pr: PullRequestID, event: Mapping[str, Any]) -> None: ...


class _Emitter(Protocol):
    def emit_dist(self, name: str, value: float, tags: list[str]) -> None: ...


def _section(mapping: Mapping[str, Any] | None, key: str) -> Mapping[str, Any]:
    return (mapping or {}).get(key) or {}


def _parse_error(reason: str) -> APIError:
    logger.error(reason)
    return invalid_request(_PARSE_ERROR, ValueError(reason))


def _pull_request_id(event: Mapping[str, Any]) -> PullRequestID:
    repo = _section(event, "repository")
    pull = _section(event, "pull_request")
    return PullRequestID(
        owner=_section(repo, "owner").get("login") or "",
        repo=repo.get("name") or "",
        number=pull.get("number") or 0,
        node_id=pull.get("node_id") or "",
        repo_full_name=repo.get("full_name") or "",
        author=_section(pull, "user").get("login") or "",
        url=pull.get("html_url") or "",
    )


class Dispatcher:
    """Validates pull request events and passes those worth handling to the handler."""

    def __init__(self, handler: _Handler, event_filter: _Filter, metrics: _Emitter) -> None:
        self._handler = handler
        self._filter = event_filter
        self._metrics = metrics

    def dispatch(self, delivery_id: str, event_name: str, event: Mapping[str, Any] | None) -> None:
        """Handle one webhook delivery.

        Raises a 400 APIError for malformed events; errors from the filter or
        the handler propagate. Events from non-public repositories are ignored.
        """
        if event_name != EVENT_NAME:
            raise _parse_error(_MISMATCHED_EVENT)
        if not event or not event.get("action"):
            raise _parse_error(_ACTION_NOT_FOUND)
        if event.get("pull_request") is None:
            raise _parse_error(_PR_NOT_FOUND)

        if _section(event, "repository").get("visibility") != "public":
            return

        action = event["action"]
        pr = _pull_request_id(event)

        if not self._filter.should_handle(pr):
            self._metrics.emit_dist("ignoredRepos", 1, pr.to_tags())
            return

        if action == _OPENED and pr.author.startswith(_SERVICE_ACCOUNT_PREFIX):
            self._metrics.emit_dist("openedPRs", 1.0, pr.to_tags())

        if action in _HANDLED_ACTIONS:
            self._handler.eval_and_review(pr, event)
            return

        logger.info(
            "No Handlers registered for Event: %s and Action: %s (repo %s, pr %s)",
            event_name,
            action,
            pr.repo_full_name,
            pr.number,
        )