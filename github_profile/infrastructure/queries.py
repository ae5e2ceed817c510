"""
Query catalog for the GitHub GraphQL API.

Each GraphQLQuery pairs a document with its parser. The parsers are the
anti-corruption layer: they are the only code that knows GitHub's field
names. If GitHub renames a field, fix it HERE only.

Parsers receive the `user` object of the response and may raise
AttributeError, KeyError, TypeError or ValueError on malformed input.
The executor turns those into NOT_FOUND failures.
"""

from __future__ import annotations

from datetime import datetime

from github_profile.domain.entities import (
    GitHubUserActivity,
    GitHubUserContributionsByYear,
    GitHubUserIssue,
    GitHubUserPullRequest,
    GitHubUserRepository,
    GraphQLQuery,
    QueryCatalog,
    RepositoryNode,
)

QUERY_USER_REPOSITORY = """
query userInfo($username: String!) {
  user(login: $username) {
    repositories(first: 100, ownerAffiliations: OWNER, orderBy: {direction: DESC, field: STARGAZERS}) {
      totalCount
      nodes {
        languages(first: 3, orderBy: {direction: DESC, field: SIZE}) {
          nodes {
            name
          }
        }
        stargazers {
          totalCount
        }
      }
    }
  }
}
"""

QUERY_USER_ACTIVITY = """
query userInfo($username: String!) {
  user(login: $username) {
    createdAt
    contributionsCollection {
      totalCommitContributions
      restrictedContributionsCount
      totalPullRequestReviewContributions
    }
    organizations(first: 1) {
      totalCount
    }
    followers(first: 1) {
      totalCount
    }
  }
}
"""

QUERY_USER_ISSUE = """
query userInfo($username: String!) {
  user(login: $username) {
    openIssues: issues(states: OPEN) {
      totalCount
    }
    closedIssues: issues(states: CLOSED) {
      totalCount
    }
  }
}
"""

QUERY_USER_PULL_REQUEST = """
query userInfo($username: String!) {
  user(login: $username) {
    pullRequests(first: 1) {
      totalCount
    }
  }
}
"""

QUERY_USER_CONTRIBUTIONS_BY_YEAR = """
query userInfo($username: String!, $from: DateTime!, $to: DateTime!) {
  user(login: $username) {
    contributionsCollection(from: $from, to: $to) {
      totalCommitContributions
      restrictedContributionsCount
    }
  }
}
"""


def _parse_datetime(value: str) -> datetime:
    """Convert GitHub's ISO datetime string to Python datetime."""
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _total(node: dict, key: str) -> int:
    return int(node[key]["totalCount"])


def parse_user_repository(user: dict) -> GitHubUserRepository:
    repos = user["repositories"]
    nodes = tuple(
        RepositoryNode(
            stargazer_count = _total(node, "stargazers"),
            languages       = tuple(
                lang["name"] for lang in (node.get("languages") or {}).get("nodes") or []
                if lang and lang.get("name")
            ),
        )
        for node in repos.get("nodes") or []
        if node
    )
    return GitHubUserRepository(total_count=int(repos["totalCount"]), repositories=nodes)


def parse_user_activity(user: dict) -> GitHubUserActivity:
    contributions = user["contributionsCollection"]
    return GitHubUserActivity(
        created_at                              = _parse_datetime(user["createdAt"]),
        total_commit_contributions              = int(contributions["totalCommitContributions"]),
        restricted_contributions_count          = int(contributions["restrictedContributionsCount"]),
        total_pull_request_review_contributions = int(contributions["totalPullRequestReviewContributions"]),
        organizations_count                     = _total(user, "organizations"),
        followers_count                         = _total(user, "followers"),
    )


def parse_user_issue(user: dict) -> GitHubUserIssue:
    return GitHubUserIssue(
        open_issues   = _total(user, "openIssues"),
        closed_issues = _total(user, "closedIssues"),
    )


def parse_user_pull_request(user: dict) -> GitHubUserPullRequest:
    return GitHubUserPullRequest(total_count=_total(user, "pullRequests"))


def parse_user_contributions_by_year(user: dict) -> GitHubUserContributionsByYear:
    contributions = user["contributionsCollection"]
    return GitHubUserContributionsByYear(
        total_commit_contributions     = int(contributions["totalCommitContributions"]),
        restricted_contributions_count = int(contributions["restrictedContributionsCount"]),
    )


GITHUB_QUERY_CATALOG = QueryCatalog(
    user_repository            = GraphQLQuery("userRepository", QUERY_USER_REPOSITORY, parse_user_repository),
    user_activity              = GraphQLQuery("userActivity", QUERY_USER_ACTIVITY, parse_user_activity),
    user_issue                 = GraphQLQuery("userIssue", QUERY_USER_ISSUE, parse_user_issue),
    user_pull_request          = GraphQLQuery("userPullRequest", QUERY_USER_PULL_REQUEST, parse_user_pull_request),
    user_contributions_by_year = GraphQLQuery(
        "userContributionsByYear",
        QUERY_USER_CONTRIBUTIONS_BY_YEAR,
        parse_user_contributions_by_year,
    ),
)
