from http import HTTPStatus

import pytest

from prbot.domain import (
    APIError,
    PullRequestID,
    author_key,
    invalid_request,
    org_key,
    repo_key,
    service_fault,
    too_many_requests,
    user_error,
)


def make_id(owner="owner1", repo="repo1", author="author1"):
    return PullRequestID(
        owner=owner,
        repo=repo,
        number=1,
        node_id="nodeid1",
        repo_full_name=f"{owner}/{repo}",
        author=author,
        url=f"{owner}/{repo}/1",
    )


def test_org_key():
    assert org_key(make_id()) == "Org/owner1"


def test_repo_key():
    assert repo_key(make_id()) == "Repo/owner1/repo1"


def test_author_key():
    assert author_key(make_id()) == "Author/author1"


def test_keys_differ_between_pull_requests():
    a = make_id(owner="a", repo="x", author="u")
    b = make_id(owner="b", repo="y", author="v")
    assert org_key(a) != org_key(b) and org_key(a).endswith("a")
    assert repo_key(a).endswith(a.repo_full_name)
    assert author_key(b).endswith("v")


def test_to_tags_describe_pull_request():
    pr = make_id()
    tags = pr.to_tags()
    assert all(":" in tag for tag in tags)
    assert any(tag.endswith(pr.repo_full_name) for tag in tags)
    assert any(tag.endswith(pr.author) for tag in tags)


def test_to_tags_returns_fresh_list():
    pr = make_id()
    tags = pr.to_tags()
    tags.append("extra:1")
    assert "extra:1" not in pr.to_tags()


def test_too_many_requests_status():
    err = too_many_requests("throttled", None)
    assert err.status_code == HTTPStatus.TOO_MANY_REQUESTS


def test_service_fault_status_and_cause():
    cause = RuntimeError("random error")
    with pytest.raises(APIError) as info:
        raise service_fault("Error approving PR", cause)
    assert info.value.status_code == HTTPStatus.INTERNAL_SERVER_ERROR
    assert info.value.__cause__ is cause
    assert info.value.message == "Error approving PR"


def test_invalid_request_status():
    assert invalid_request("error parsing webhook event", None).status_code == HTTPStatus.BAD_REQUEST


def test_helpers_give_distinct_statuses():
    cause = RuntimeError("x")
    codes = {f("m", cause).status_code for f in (user_error, service_fault, too_many_requests, invalid_request)}
    assert len(codes) == 4


def test_errors_with_same_fields_are_equal():
    cause = ValueError("expected pull_request event")
    a = invalid_request("error parsing webhook event", cause)
    b = invalid_request("error parsing webhook event", cause)
    assert a == b
    assert hash(a) == hash(b)


def test_errors_with_different_causes_are_not_equal():
    a = invalid_request("error parsing webhook event", ValueError("one"))
    b = invalid_request("error parsing webhook event", ValueError("two"))
    assert (a == b) is False


def test_str_includes_message_and_cause():
    err = user_error("Error enabling auto merge on PR", RuntimeError("auto merge is disabled in repo"))
    text = str(err)
    assert "Error enabling auto merge on PR" in text
    assert "auto merge is disabled in repo" in text


def test_str_without_cause_is_message():
    assert str(service_fault("Error approving PR", None)) == "Error approving PR"