"""
main.py — Dependency Wiring (Composition Root)
------------------------------------------------
Wires the pieces together and prints one user's aggregated profile.

No business logic lives here. It:
  1. Reads configuration from environment variables
  2. Creates the concrete transport, executor and query catalog
  3. Injects them, with the credential pool, into GithubApiService
  4. Calls request_user_info and reports the result

Dependency graph:
                      main.py  (wires everything)
                         │
                         ▼
                  GithubApiService ── CredentialRotatingRetry
                    │          │
                    ▼          ▼
       GitHubQueryExecutor   QueryCatalog
                    │
                    ▼
        GitHubGraphQLTransport ── httpx.AsyncClient
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import replace
from datetime import datetime, timezone

import httpx

# Application layer
from github_profile.application.github_service import GithubApiService
from github_profile.config import ConfigError, Settings, load_settings
from github_profile.domain.errors import ServiceError

# Infrastructure layer
from github_profile.infrastructure.github_client import GitHubGraphQLTransport, GitHubQueryExecutor
from github_profile.infrastructure.queries import GITHUB_QUERY_CATALOG

log = logging.getLogger(__name__)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
        datefmt="%H:%M:%S",
    )
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


async def build_and_run(settings: Settings, username: str) -> int:
    """
    Wires all dependencies together and fetches one profile.
    Returns the process exit code.
    """
    client = httpx.AsyncClient()

    try:
        transport = GitHubGraphQLTransport(
            client  = client,            # injected — the transport doesn't create this
            api_url = settings.api_url,
            timeout = settings.timeout,
        )
        service = GithubApiService(
            executor    = GitHubQueryExecutor(transport),
            catalog     = GITHUB_QUERY_CATALOG,
            credentials = settings.credentials,
            retry_delay = settings.retry_delay,
        )

        result = await service.request_user_info(username)

        if isinstance(result, ServiceError):
            log.error("Failed | %s | %s", username, result.to_dict())
            return 1

        log.info(
            "Success | %s | %d commits | %d stars | %d repos",
            username,
            result.total_commits,
            result.total_stargazers,
            result.total_repositories,
        )
        print(json.dumps(result.to_dict(now=datetime.now(tz=timezone.utc)), indent=2))
        return 0

    finally:
        await client.aclose()


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Aggregate a GitHub user's profile statistics"
    )
    parser.add_argument("username", help="GitHub login to look up")
    parser.add_argument(
        "--retry-delay",
        type    = float,
        default = None,
        help    = "Seconds to wait before retrying with the next token (default: $GITHUB_RETRY_DELAY or 1.0)",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def run(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    _configure_logging(args.verbose)

    try:
        settings = load_settings()
    except ConfigError as exc:
        log.error("%s", exc)
        sys.exit(1)

    if args.retry_delay is not None:
        if args.retry_delay < 0:
            log.error("--retry-delay must be >= 0")
            sys.exit(1)
        settings = replace(settings, retry_delay=args.retry_delay)

    sys.exit(asyncio.run(build_and_run(settings, args.username)))


if __name__ == "__main__":
    run()
