"""Core domain values shared across the bot: pull request identity, API errors, metrics."""

from __future__ import annotations

from dataclasses import dataclass
from http import HTTPStatus
from typing import Protocol


@dataclass(frozen=True)
class PullRequestID:
    """Identifies a pull request and the repository it belongs to."""

    owner: str = ""
    repo: str = ""
    number: int = 0
    node_id: str = ""
    repo_full_name: str = ""
    author: str = ""
    url: str = ""

    def to_tags(self) -> list[str]:
        """Metric tags describing this pull request; a fresh list on every call."""
        return [
            f"owner:{self.owner}",
            f"repo:{self.repo_full_name}",
            f"author:{self.author}",
        ]


class APIError(Exception):
    """An error that carries the HTTP status it should be reported with."""

    def __init__(self, status_code: int, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.status_code = int(status_code)
        self.message = message
        self.cause = cause
        self.__cause__ = cause

    def __str__(self) -> str:
        if self.cause is None:
            return self.message
        return f"{self.message}: {self.cause}"

    def __repr__(self) -> str:
        return f"APIError(status_code={self.status_code}, message={self.message!r}, cause={self.cause!r})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, APIError):
            return NotImplemented
        return (
            self.status_code == other.status_code
            and self.message == other.message
            and self.cause == other.cause
        )

    def __hash__(self) -> int:
        return hash((self.status_code, self.message))


def user_error(message: str, cause: BaseException | None) -> APIError:
    """An error caused by how the user's repository or request is set up."""
    return APIError(HTTPStatus.UNPROCESSABLE_ENTITY, message, cause)


def service_fault(message: str, cause: BaseException | None) -> APIError:
    """An error inside the service or one of its dependencies."""
    return APIError(HTTPStatus.INTERNAL_SERVER_ERROR, message, cause)


def too_many_requests(message: str, cause: BaseException | None) -> APIError:
    """An error telling the caller it has been throttled."""
    return APIError(HTTPStatus.TOO_MANY_REQUESTS, message, cause)


def invalid_request(message: str, cause: BaseException | None) -> APIError:
    """An error for a malformed or unexpected request."""
    return APIError(HTTPStatus.BAD_REQUEST, message, cause)


class Emitter(Protocol):
    """Anything that records distribution metrics."""

    def emit_dist(self, name: str, value: float, tags: list[str]) -> None: ...


class NoopEmitter:
    """A metrics emitter that drops every sample, keeping only a count of them."""

    def __init__(self) -> None:
        self.dropped = 0
        self.closed = False

    def emit_dist(self, name: str, value: float, tags: list[str]) -> None:
        """Drop a distribution sample."""
        self.dropped += 1

    def close(self) -> None:
        """Mark the emitter as closed."""
        self.closed = True


def org_key(pr: PullRequestID) -> str:
    """Throttling key for the organisation owning the repository."""
    return "Org/" + pr.owner


def repo_key(pr: PullRequestID) -> str:
    """Throttling key for the repository."""
    return "Repo/" + pr.repo_full_name


def author_key(pr: PullRequestID) -> str:
    """Throttling key for the author of the pull request."""
    return "Author/" + pr.author