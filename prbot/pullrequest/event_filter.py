"""Decides which repositories the bot acts on, from allow and deny lists and repo topics."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, Protocol

from prbot.domain import PullRequestID, service_fault

logger = logging.getLogger(__name__)


@dataclass
class RepoFilterConfig:
    """Patterns of repository full names to allow or deny, and topics that opt a repo out.

    `update` compiles the patterns; call it whenever the lists change.
    """

    allowlist: list[str] = field(default_factory=list)
    denylist: list[str] = field(default_factory=list)
    ignore_topics: list[str] = field(default_factory=list)
    allowlist_regex: list[re.Pattern[str]] = field(default_factory=list, compare=False, repr=False)
    denylist_regex: list[re.Pattern[str]] = field(default_factory=list, compare=False, repr=False)
    ignore_topics_set: frozenset[str] = field(default_factory=frozenset, compare=False, repr=False)

    def update(self) -> None:
        """Compile the allow and deny patterns; raises re.error on an invalid pattern."""
        allow = [re.compile(pattern) for pattern in self.allowlist or ()]
        deny = [re.compile(pattern) for pattern in self.denylist or ()]
        self.allowlist_regex = allow
        self.denylist_regex = deny
        self.ignore_topics_set = frozenset(self.ignore_topics or ())


class _ConfigSource(Protocol):
    def get(self) -> RepoFilterConfig: ...


class TopicsAPI(Protocol):
    def list_all_topics(self, pr: PullRequestID) -> Iterable[str] | None: ...


def _matches(patterns: Iterable[re.Pattern[str]], name: str) -> bool:
    return any(pattern.search(name) for pattern in patterns)


class RepoFilter:
    """Handles a pull request only if its repo is allowed, not denied and not opted out."""

    def __init__(self, store: _ConfigSource, api: TopicsAPI) -> None:
        self._store = store
        self._api = api

    def should_handle(self, pr: PullRequestID) -> bool:
        """Whether the bot should act on `pr`; the deny list and ignore topics win over the allow list."""
        try:
            cfg = self._store.get()
        except Exception as err:
            logger.error("error while retrieving repo filter cfg: %s", err)
            raise
        name = pr.repo_full_name

        if cfg.denylist_regex and _matches(cfg.denylist_regex, name):
            logger.info("ShouldHandle=false %s is matching the repo deny list", name)
            return False

        try:
            ignored = self._has_ignore_topic(pr, cfg)
        except Exception as err:
            logger.error("ShouldHandle=false error while listing topics on %s: %s", name, err)
            raise
        if ignored:
            logger.info("ShouldHandle=false %s has one of %s topic set", name, cfg.ignore_topics)
            return False

        if cfg.allowlist_regex and _matches(cfg.allowlist_regex, name):
            logger.info("ShouldHandle=true %s is matching the repo allow list", name)
            return True

        logger.info("ShouldHandle=false %s is not matching the repo allow or deny list", name)
        return False

    def _has_ignore_topic(self, pr: PullRequestID, cfg: RepoFilterConfig) -> bool:
        try:
            topics = self._api.list_all_topics(pr)
        except Exception as err:
            raise service_fault("error listing topics on repo", err) from err
        return any(topic in cfg.ignore_topics_set for topic in topics or ())