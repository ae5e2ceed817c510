from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from types import MappingProxyType
from typing import Any, Callable, Generic, Mapping, TypeVar, Union

from .errors import ServiceError

T = TypeVar("T")


@dataclass(frozen=True)
class CredentialPool:
    """
    Ordered, fixed-size pool of GitHub access tokens.

    Slots may be None or empty (an unset environment variable); they are
    kept so that slot positions stay stable. Built once at startup and
    injected; nothing reads tokens from the environment after that.
    """
    tokens: tuple[str | None, ...]

    def __post_init__(self) -> None:
        if not self.tokens:
            raise ValueError("CredentialPool needs at least one slot")
        object.__setattr__(self, "tokens", tuple(self.tokens))

    def __len__(self) -> int:
        return len(self.tokens)

    def __getitem__(self, index: int) -> str | None:
        return self.tokens[index]

    def __repr__(self) -> str:
        # never print tokens
        filled = sum(1 for t in self.tokens if t)
        return f"CredentialPool(slots={len(self.tokens)}, filled={filled})"


@dataclass(frozen=True)
class GraphQLQuery(Generic[T]):
    """
    One entry of the query catalog: a named GraphQL document plus the
    parser that turns the response's `user` object into a domain entity.
    """
    name:     str
    document: str
    parse:    Callable[[dict], T] = field(compare=False, repr=False)


@dataclass(frozen=True)
class QueryCatalog:
    """The five queries the profile service issues."""
    user_repository:          GraphQLQuery[GitHubUserRepository]
    user_activity:            GraphQLQuery[GitHubUserActivity]
    user_issue:               GraphQLQuery[GitHubUserIssue]
    user_pull_request:        GraphQLQuery[GitHubUserPullRequest]
    user_contributions_by_year: GraphQLQuery[GitHubUserContributionsByYear]


@dataclass(frozen=True)
class QueryRequest(Generic[T]):
    """A query plus its variables. The variables are copied and read-only."""
    query:     GraphQLQuery[T]
    variables: Mapping[str, str]

    def __post_init__(self) -> None:
        object.__setattr__(self, "variables", MappingProxyType(dict(self.variables)))


# ---------------------------------------------------------------------------
# Query outcomes
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Success(Generic[T]):
    value: T

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Failure:
    error: ServiceError

    @property
    def ok(self) -> bool:
        return False

    @property
    def kind(self):
        return self.error.kind

    def unwrap(self):
        raise self.error


QueryOutcome = Union[Success[T], Failure]


# ---------------------------------------------------------------------------
# Query results
# ---------------------------------------------------------------------------
# Field names are ours (snake_case). The translation from GitHub's
# camelCase happens in infrastructure/queries.py and nowhere else.

@dataclass(frozen=True)
class RepositoryNode:
    stargazer_count: int
    languages:       tuple[str, ...] = ()


@dataclass(frozen=True)
class GitHubUserRepository:
    total_count:  int
    repositories: tuple[RepositoryNode, ...] = ()

    @property
    def total_stargazers(self) -> int:
        return sum(r.stargazer_count for r in self.repositories)

    @property
    def languages(self) -> frozenset[str]:
        return frozenset(lang for r in self.repositories for lang in r.languages)


@dataclass(frozen=True)
class GitHubUserActivity:
    created_at:                             datetime
    total_commit_contributions:             int
    restricted_contributions_count:         int
    total_pull_request_review_contributions: int
    organizations_count:                    int
    followers_count:                        int


@dataclass(frozen=True)
class GitHubUserIssue:
    open_issues:   int
    closed_issues: int


@dataclass(frozen=True)
class GitHubUserPullRequest:
    total_count: int


@dataclass(frozen=True)
class GitHubUserContributionsByYear:
    total_commit_contributions:     int
    restricted_contributions_count: int

    @property
    def commit_total(self) -> int:
        """Public plus private commits in the window."""
        return self.total_commit_contributions + self.restricted_contributions_count


@dataclass(frozen=True)
class YearWindow:
    """One calendar year clipped to [account creation, now]."""
    year:      int
    from_time: datetime
    to_time:   datetime


# ---------------------------------------------------------------------------
# Aggregated profile
# ---------------------------------------------------------------------------

ANCIENT_ACCOUNT_YEAR = 2010


@dataclass(frozen=True)
class UserInfo:
    """
    The composite profile. Only ever built from four successful query
    results; there is no partially populated UserInfo.
    """
    activity:         GitHubUserActivity
    issue:            GitHubUserIssue
    pull_request:     GitHubUserPullRequest
    repository:       GitHubUserRepository
    all_time_commits: int

    def __post_init__(self) -> None:
        if self.all_time_commits < 0:
            raise ValueError("all_time_commits must be >= 0")

    @property
    def total_commits(self) -> int:
        return self.all_time_commits

    @property
    def total_followers(self) -> int:
        return self.activity.followers_count

    @property
    def total_issues(self) -> int:
        return self.issue.open_issues + self.issue.closed_issues

    @property
    def total_organizations(self) -> int:
        return self.activity.organizations_count

    @property
    def total_pull_requests(self) -> int:
        return self.pull_request.total_count

    @property
    def total_reviews(self) -> int:
        return self.activity.total_pull_request_review_contributions

    @property
    def total_stargazers(self) -> int:
        return self.repository.total_stargazers

    @property
    def total_repositories(self) -> int:
        return self.repository.total_count

    @property
    def language_count(self) -> int:
        return len(self.repository.languages)

    @property
    def created_at(self) -> datetime:
        return self.activity.created_at

    @property
    def ancient_account(self) -> bool:
        return self.created_at.year <= ANCIENT_ACCOUNT_YEAR

    @property
    def joined_2020(self) -> bool:
        return self.created_at.year == 2020

    def account_age_days(self, now: datetime) -> int:
        return max((now - self.created_at).days, 0)

    def account_age_years(self, now: datetime) -> int:
        years = now.year - self.created_at.year
        if (now.month, now.day) < (self.created_at.month, self.created_at.day):
            years -= 1
        return max(years, 0)

    def to_dict(self, now: datetime | None = None) -> dict[str, Any]:
        d: dict[str, Any] = {
            "created_at":          self.created_at.isoformat(),
            "total_commits":       self.total_commits,
            "total_followers":     self.total_followers,
            "total_issues":        self.total_issues,
            "total_organizations": self.total_organizations,
            "total_pull_requests": self.total_pull_requests,
            "total_reviews":       self.total_reviews,
            "total_stargazers":    self.total_stargazers,
            "total_repositories":  self.total_repositories,
            "language_count":      self.language_count,
            "ancient_account":     self.ancient_account,
            "joined_2020":         self.joined_2020,
        }
        if now is not None:
            d["account_age_days"]  = self.account_age_days(now)
            d["account_age_years"] = self.account_age_years(now)
        return d
