"""Tests for the composition root: wiring, exit codes and output."""

import json

import httpx
import pytest

import main
from conftest import ACTIVITY_USER, CONTRIBUTIONS_USER, ISSUE_USER, PULL_REQUEST_USER, REPOSITORY_USER
from github_profile.domain.entities import CredentialPool
from github_profile.config import Settings

RealAsyncClient = httpx.AsyncClient


def github_handler(request: httpx.Request) -> httpx.Response:
    """Answers each catalog query with its sample payload."""
    query = json.loads(request.content)["query"]
    if "contributionsCollection(from:" in query:
        user = CONTRIBUTIONS_USER
    elif "repositories(" in query:
        user = REPOSITORY_USER
    elif "openIssues" in query:
        user = ISSUE_USER
    elif "pullRequests" in query:
        user = PULL_REQUEST_USER
    else:
        user = ACTIVITY_USER
    return httpx.Response(200, json={"data": {"user": user}})


@pytest.fixture
def mock_github(monkeypatch):
    def install(handler):
        monkeypatch.setattr(
            main.httpx, "AsyncClient",
            lambda *args, **kwargs: RealAsyncClient(transport=httpx.MockTransport(handler)),
        )
    return install


@pytest.fixture
def settings() -> Settings:
    return Settings(credentials=CredentialPool(("token-1", "token-2")), retry_delay=0)


class TestBuildAndRun:
    @pytest.mark.asyncio
    async def test_prints_profile(self, mock_github, settings, capsys):
        mock_github(github_handler)

        code = await main.build_and_run(settings, "octocat")

        assert code == 0
        profile = json.loads(capsys.readouterr().out)
        assert profile["total_stargazers"] == 42
        assert profile["total_issues"] == 10
        # 6 commits per year window since 2020
        assert profile["total_commits"] > 0
        assert profile["total_commits"] % 6 == 0

    @pytest.mark.asyncio
    async def test_unknown_user_exits_nonzero(self, mock_github, settings, capsys):
        mock_github(lambda request: httpx.Response(200, json={"data": {"user": None}}))

        code = await main.build_and_run(settings, "ghost")

        assert code == 1
        assert capsys.readouterr().out == ""


class TestRun:
    def test_parse_args(self):
        args = main.parse_args(["octocat", "--retry-delay", "0.5", "-v"])

        assert args.username == "octocat"
        assert args.retry_delay == 0.5
        assert args.verbose

    def test_missing_tokens_exit_1(self, monkeypatch):
        monkeypatch.delenv("GITHUB_TOKEN1", raising=False)
        monkeypatch.delenv("GITHUB_TOKEN2", raising=False)

        with pytest.raises(SystemExit) as info:
            main.run(["octocat"])

        assert info.value.code == 1

    def test_negative_retry_delay_exit_1(self, monkeypatch):
        monkeypatch.setenv("GITHUB_TOKEN1", "token-1")

        with pytest.raises(SystemExit) as info:
            main.run(["octocat", "--retry-delay", "-1"])

        assert info.value.code == 1
