from __future__ import annotations

from http import HTTPStatus

import pytest

from prbot.domain import APIError, PullRequestID
from prbot.pullrequest.dispatcher import Dispatcher


class RandomError(Exception):
    pass


class FakeFilter:
    def __init__(self, result=True, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def should_handle(self, pr):
        self.calls.append(pr)
        if self.error is not None:
            raise self.error
        return self.result


class FakeHandler:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def eval_and_review(self, pr, event):
        self.calls.append((pr, event))
        if self.error is not None:
            raise self.error


class RecordingEmitter:
    def __init__(self):
        self.samples = []

    def emit_dist(self, name, value, tags):
        self.samples.append((name, value, list(tags)))

    def close(self):
        pass


def sample_id(author="user1"):
    return PullRequestID(
        owner="owner1",
        repo="repo1",
        number=1,
        node_id="nodeid1",
        repo_full_name="owner1/repo1",
        author=author,
        url="owner1/repo1/1",
    )


def pr_event(action, pr=None):
    pr = pr or sample_id()
    return {
        "action": action,
        "pull_request": {
            "number": pr.number,
            "node_id": pr.node_id,
            "user": {"login": pr.author},
            "html_url": f"{pr.owner}/{pr.repo}/{pr.number}",
            "base": {
                "repo": {
                    "allow_auto_merge": False,
                    "allow_rebase_merge": False,
                    "allow_squash_merge": False,
                    "allow_merge_commit": False,
                }
            },
            "changed_files": 1,
        },
        "repository": {
            "owner": {"login": pr.owner},
            "default_branch": "main",
            "name": pr.repo,
            "full_name": pr.repo_full_name,
            "visibility": "public",
        },
    }


def make(filter_result=True, filter_error=None, handler_error=None):
    f = FakeFilter(filter_result, filter_error)
    h = FakeHandler(handler_error)
    m = RecordingEmitter()
    return Dispatcher(h, f, m), f, h, m


@pytest.mark.parametrize(
    "action",
    [
        "opened",
        "reopened",
        "edited",
        "labeled",
        "unlabeled",
        "review_requested",
        "review_request_removed",
        "assigned",
        "unassigned",
        "synchronize",
    ],
)
def test_dispatches_known_actions(action):
    d, f, h, _ = make()
    event = pr_event(action)
    if action == "labeled":
        event["label"] = {"name": "l1"}
    d.dispatch("123", "pull_request", event)
    assert f.calls == [sample_id()]
    assert h.calls == [(sample_id(), event)]


def test_unknown_action_is_ignored():
    d, f, h, _ = make()
    d.dispatch("123", "pull_request", pr_event("unknown"))
    assert f.calls == [sample_id()]
    assert h.calls == []


def test_skips_when_filter_says_no():
    d, f, h, m = make(filter_result=False)
    d.dispatch("123", "pull_request", pr_event("unknown"))
    assert h.calls == []
    assert [name for name, _, _ in m.samples] == ["ignoredRepos"]


def test_skips_known_action_when_filter_says_no():
    d, _, h, _ = make(filter_result=False)
    d.dispatch("123", "pull_request", pr_event("opened"))
    assert h.calls == []


def assert_parse_error(err, reason):
    assert isinstance(err, APIError)
    assert err.status_code == HTTPStatus.BAD_REQUEST
    assert err.message == "error parsing webhook event"
    assert str(err.cause) == reason


def test_mismatched_event_name():
    d, f, h, _ = make()
    with pytest.raises(APIError) as info:
        d.dispatch("123", "pull_requestasd asd", pr_event("reopened"))
    assert_parse_error(info.value, "expected pull_request event")
    assert f.calls == [] and h.calls == []


def test_missing_action():
    d, f, _, _ = make()
    with pytest.raises(APIError) as info:
        d.dispatch("123", "pull_request", pr_event(None))
    assert_parse_error(info.value, "event action was empty or nil")
    assert f.calls == []


def test_empty_action():
    d, _, _, _ = make()
    with pytest.raises(APIError) as info:
        d.dispatch("123", "pull_request", pr_event(""))
    assert_parse_error(info.value, "event action was empty or nil")


def test_missing_event():
    d, _, _, _ = make()
    with pytest.raises(APIError) as info:
        d.dispatch("123", "pull_request", None)
    assert_parse_error(info.value, "event action was empty or nil")


def test_missing_pull_request():
    d, f, _, _ = make()
    with pytest.raises(APIError) as info:
        d.dispatch("123", "pull_request", {"action": "reopened", "pull_request": None})
    assert_parse_error(info.value, "event.pull_request was nil")
    assert f.calls == []


@pytest.mark.parametrize("action", ["reopened", "opened", "labeled"])
def test_handler_error_propagates(action):
    err = RandomError("random error")
    d, _, h, _ = make(handler_error=err)
    with pytest.raises(RandomError) as info:
        d.dispatch("123", "pull_request", pr_event(action))
    assert info.value is err
    assert len(h.calls) == 1


def test_filter_error_propagates():
    err = RandomError("random error")
    d, _, h, _ = make(filter_result=False, filter_error=err)
    with pytest.raises(RandomError) as info:
        d.dispatch("123", "pull_request", pr_event("reopened"))
    assert info.value is err
    assert h.calls == []


@pytest.mark.parametrize("visibility", ["private", None, ""])
def test_non_public_repos_are_skipped(visibility):
    d, f, h, _ = make()
    event = pr_event("labeled")
    event["repository"]["visibility"] = visibility
    d.dispatch("123", "pull_request", event)
    assert f.calls == [] and h.calls == []


def test_opened_by_service_account_emits_metric():
    pr = sample_id(author="svc-bot")
    d, _, h, m = make()
    d.dispatch("123", "pull_request", pr_event("opened", pr))
    assert [name for name, _, _ in m.samples] == ["openedPRs"]
    assert h.calls[0][0] == pr


def test_opened_by_person_emits_no_metric():
    d, _, h, m = make()
    d.dispatch("123", "pull_request", pr_event("opened"))
    assert m.samples == []
    assert len(h.calls) == 1