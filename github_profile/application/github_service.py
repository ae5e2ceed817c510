from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Callable, Mapping, TypeVar

from github_profile.domain.entities import (
    CredentialPool,
    GitHubUserActivity,
    GitHubUserContributionsByYear,
    GitHubUserIssue,
    GitHubUserPullRequest,
    GitHubUserRepository,
    GraphQLQuery,
    QueryCatalog,
    QueryRequest,
    UserInfo,
)
from github_profile.domain.errors import RetryExhaustedError, ServiceError
from github_profile.domain.interfaces import IQueryExecutor
from .retry import DEFAULT_RETRY_DELAY, CredentialRotatingRetry
from .year_windows import format_timestamp, generate_year_windows, parse_timestamp

log = logging.getLogger(__name__)

T = TypeVar("T")


def _utc_now() -> datetime:
    return datetime.now(tz=timezone.utc)


class GithubApiService:
    """
    Builds a user profile out of several GitHub GraphQL queries.

    All dependencies are injected:
      - IQueryExecutor  → how one query is sent and classified
      - QueryCatalog    → which documents to send
      - CredentialPool  → which tokens to rotate through
      - clock           → what "now" is for the year windows

    Every public method returns either a value or a ServiceError. None of
    them raise.
    """

    def __init__(self,executor: IQueryExecutor,catalog: QueryCatalog,credentials: CredentialPool,retry_delay: float = DEFAULT_RETRY_DELAY,retry: CredentialRotatingRetry | None = None,clock: Callable[[], datetime] = _utc_now) -> None:
        self._executor    = executor
        self._catalog     = catalog
        self._credentials = credentials
        self._retry       = retry or CredentialRotatingRetry(len(credentials), retry_delay)
        self._clock       = clock

        if self._retry.max_attempts > len(credentials):
            raise ValueError(
                f"Retry allows {self._retry.max_attempts} attempts "
                f"but the pool only has {len(credentials)} credentials"
            )

    # ------------------------------------------------------------------
    # Single queries
    # ------------------------------------------------------------------

    async def execute_query(self, query: GraphQLQuery[T], variables: Mapping[str, str]) -> T | ServiceError:
        """Run one query, rotating credentials on failure."""
        request = QueryRequest(query=query, variables=variables)

        async def attempt(index: int) -> T:
            outcome = await self._executor.execute(request, self._credentials[index])
            return outcome.unwrap()

        try:
            return await self._retry.fetch(attempt)
        except RetryExhaustedError as exc:
            log.error("Query %s gave up: %s", query.name, exc.to_dict())
            return exc
        except Exception as exc:
            log.error("Query %s failed unexpectedly: %r", query.name, exc, exc_info=True)
            return ServiceError.not_found(cause=exc)

    async def request_user_repository(self, username: str) -> GitHubUserRepository | ServiceError:
        return await self.execute_query(self._catalog.user_repository, {"username": username})

    async def request_user_activity(self, username: str) -> GitHubUserActivity | ServiceError:
        return await self.execute_query(self._catalog.user_activity, {"username": username})

    async def request_user_issue(self, username: str) -> GitHubUserIssue | ServiceError:
        return await self.execute_query(self._catalog.user_issue, {"username": username})

    async def request_user_pull_request(self, username: str) -> GitHubUserPullRequest | ServiceError:
        return await self.execute_query(self._catalog.user_pull_request, {"username": username})

    async def request_user_contributions_by_year(self,username: str,from_: str,to: str) -> GitHubUserContributionsByYear | ServiceError:
        return await self.execute_query(
            self._catalog.user_contributions_by_year,
            {"username": username, "from": from_, "to": to},
        )

    # ------------------------------------------------------------------
    # Year-by-year commit total
    # ------------------------------------------------------------------

    async def request_all_time_commits(self, username: str, created_at: datetime | str) -> int:
        """
        Sum public and private commits over every calendar year since
        `created_at`.

        Years are queried one at a time, oldest first. A year that fails
        is logged and counts as 0; it never stops the loop.
        """
        if isinstance(created_at, str):
            try:
                created_at = parse_timestamp(created_at)
            except ValueError:
                log.error("Invalid account creation date for %s: %r", username, created_at)
                return 0

        total = 0
        for window in generate_year_windows(created_at, self._clock()):
            try:
                result = await self.request_user_contributions_by_year(
                    username,
                    format_timestamp(window.from_time),
                    format_timestamp(window.to_time),
                )
                if isinstance(result, ServiceError):
                    log.error("Failed to fetch contributions for %s in %d: %s", username, window.year, result)
                    continue

                total += result.commit_total
            except Exception as exc:
                log.error("Error fetching %s contributions for %d: %r", username, window.year, exc)

        log.debug("All-time commits for %s: %d", username, total)
        return total

    # ------------------------------------------------------------------
    # Aggregated profile
    # ------------------------------------------------------------------

    async def request_user_info(self, username: str) -> UserInfo | ServiceError:
        """
        Fetch repository, activity, issue and pull request data at once,
        then the all-time commit count.

        All four queries are awaited to completion before anything is
        decided. If any one of them failed, the whole profile is reported
        as NOT_FOUND; a profile is never returned with a missing part.
        """
        repository, activity, issue, pull_request = await asyncio.gather(
            self.request_user_repository(username),
            self.request_user_activity(username),
            self.request_user_issue(username),
            self.request_user_pull_request(username),
            return_exceptions=True,
        )
        settled = {
            "repository":   repository,
            "activity":     activity,
            "issue":        issue,
            "pull_request": pull_request,
        }

        # ServiceError is an Exception: returned errors and raised ones both land here
        failed = {
            name: result for name, result in settled.items()
            if isinstance(result, BaseException)
        }
        if failed:
            for name, result in failed.items():
                log.debug("%s query for %s failed: %r", name, username, result)
            log.error("Can not find a user with username: '%s' (failed: %s)", username, ", ".join(failed))
            return ServiceError.not_found()

        try:
            all_time_commits = await self.request_all_time_commits(username, activity.created_at)
            return UserInfo(
                activity         = activity,
                issue            = issue,
                pull_request     = pull_request,
                repository       = repository,
                all_time_commits = all_time_commits,
            )
        except Exception as exc:
            log.error("Error fetching user info for username: %s", username, exc_info=True)
            return ServiceError.not_found(cause=exc)
