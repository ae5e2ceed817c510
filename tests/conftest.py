"""Shared fixtures: raw GraphQL payloads and a scriptable fake executor."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from datetime import datetime, timezone
from typing import Callable
from unittest.mock import AsyncMock

import pytest

from github_profile.application.github_service import GithubApiService
from github_profile.application.retry import CredentialRotatingRetry
from github_profile.domain.entities import (
    CredentialPool,
    Failure,
    GitHubUserContributionsByYear,
    QueryOutcome,
    QueryRequest,
    Success,
)
from github_profile.domain.errors import ServiceError, ServiceErrorKind
from github_profile.domain.interfaces import IQueryExecutor
from github_profile.infrastructure.queries import GITHUB_QUERY_CATALOG

# Raw `user` objects as GitHub returns them
REPOSITORY_USER = {
    "repositories": {
        "totalCount": 3,
        "nodes": [
            {
                "languages": {"nodes": [{"name": "Python"}, {"name": "Shell"}]},
                "stargazers": {"totalCount": 40},
            },
            {
                "languages": {"nodes": [{"name": "Python"}, {"name": "Go"}]},
                "stargazers": {"totalCount": 2},
            },
            {
                "languages": {"nodes": []},
                "stargazers": {"totalCount": 0},
            },
        ],
    }
}

ACTIVITY_USER = {
    "createdAt": "2020-06-15T00:00:00Z",
    "contributionsCollection": {
        "totalCommitContributions": 120,
        "restrictedContributionsCount": 30,
        "totalPullRequestReviewContributions": 7,
    },
    "organizations": {"totalCount": 2},
    "followers": {"totalCount": 15},
}

ISSUE_USER = {
    "openIssues": {"totalCount": 4},
    "closedIssues": {"totalCount": 6},
}

PULL_REQUEST_USER = {
    "pullRequests": {"totalCount": 11},
}

CONTRIBUTIONS_USER = {
    "contributionsCollection": {
        "totalCommitContributions": 5,
        "restrictedContributionsCount": 1,
    }
}

USER_PAYLOADS = {
    "userRepository":          REPOSITORY_USER,
    "userActivity":            ACTIVITY_USER,
    "userIssue":               ISSUE_USER,
    "userPullRequest":         PULL_REQUEST_USER,
    "userContributionsByYear": CONTRIBUTIONS_USER,
}

FAN_OUT_QUERIES = ("userRepository", "userActivity", "userIssue", "userPullRequest")

FIXED_NOW = datetime(2022, 3, 1, tzinfo=timezone.utc)

Responder = Callable[[QueryRequest, "str | None"], QueryOutcome]


def not_found(_request: QueryRequest, _credential: str | None) -> QueryOutcome:
    return Failure(ServiceError("User not found", ServiceErrorKind.NOT_FOUND))


def contributions(commits: int, restricted: int) -> Success:
    return Success(GitHubUserContributionsByYear(commits, restricted))


class FakeQueryExecutor(IQueryExecutor):
    """
    Answers each query by name. Without a responder it parses the sample
    payload above, so every query succeeds by default.
    """

    def __init__(self) -> None:
        self.responders: dict[str, Responder] = {}
        self.calls: list[tuple[str, dict[str, str], str | None]] = []
        self.in_flight = 0
        self.max_in_flight: dict[str, int] = defaultdict(int)
        self._in_flight_by_name: dict[str, int] = defaultdict(int)

    def names_called(self) -> list[str]:
        return [name for name, _, _ in self.calls]

    def calls_for(self, name: str) -> list[tuple[str, dict[str, str], str | None]]:
        return [call for call in self.calls if call[0] == name]

    async def execute(self, request: QueryRequest, credential: str | None) -> QueryOutcome:
        name = request.query.name
        self.calls.append((name, dict(request.variables), credential))

        self._in_flight_by_name[name] += 1
        self.in_flight += 1
        self.max_in_flight[name] = max(self.max_in_flight[name], self._in_flight_by_name[name])
        self.max_in_flight["*"] = max(self.max_in_flight["*"], self.in_flight)
        try:
            await asyncio.sleep(0)
            responder = self.responders.get(name)
            if responder is not None:
                return responder(request, credential)
            return Success(request.query.parse(USER_PAYLOADS[name]))
        finally:
            self._in_flight_by_name[name] -= 1
            self.in_flight -= 1


@pytest.fixture
def executor() -> FakeQueryExecutor:
    return FakeQueryExecutor()


@pytest.fixture
def sleep() -> AsyncMock:
    """Stands in for asyncio.sleep so retries never wait."""
    return AsyncMock()


@pytest.fixture
def make_service(executor, sleep):
    def _make(tokens=("token-1", "token-2"), retry_delay: float = 1.0, now: datetime = FIXED_NOW) -> GithubApiService:
        pool = CredentialPool(tuple(tokens))
        return GithubApiService(
            executor    = executor,
            catalog     = GITHUB_QUERY_CATALOG,
            credentials = pool,
            retry       = CredentialRotatingRetry(len(pool), retry_delay, sleep=sleep),
            clock       = lambda: now,
        )

    return _make


@pytest.fixture
def service(make_service) -> GithubApiService:
    return make_service()
