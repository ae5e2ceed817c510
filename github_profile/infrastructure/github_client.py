from __future__ import annotations

import logging
from typing import Any, Mapping

import httpx

from github_profile.domain.entities import Failure, QueryOutcome, QueryRequest, Success
from github_profile.domain.errors import ServiceError, ServiceErrorKind
from github_profile.domain.interfaces import IGraphQLTransport, IQueryExecutor

log = logging.getLogger(__name__)

GITHUB_API_URL  = "https://api.github.com/graphql"
REQUEST_TIMEOUT = 30.0


class GitHubGraphQLTransport(IGraphQLTransport):
    """
    POSTs GraphQL documents to GitHub.

    The constructor receives an httpx.AsyncClient (injected) rather than
    creating one internally. The caller owns the client lifecycle.
    """

    def __init__(self,client: httpx.AsyncClient,api_url: str = GITHUB_API_URL,timeout: float = REQUEST_TIMEOUT) -> None:
        self._client  = client
        self._api_url = api_url
        self._timeout = timeout

    async def send_query(self,document: str,variables: Mapping[str, str],credential: str) -> dict[str, Any]:
        response = await self._client.post(
            self._api_url,
            headers={
                "Authorization": f"Bearer {credential}",
                "Content-Type":  "application/json",
            },
            json={"query": document, "variables": dict(variables)},
            timeout=self._timeout,
        )
        response.raise_for_status()
        return response.json()


class GitHubQueryExecutor(IQueryExecutor):
    """
    Runs one query with one credential and classifies the result.

    Nothing escapes execute(): HTTP errors, GraphQL errors and parser
    failures all come back as Failure(ServiceError).
    """

    def __init__(self, transport: IGraphQLTransport) -> None:
        self._transport = transport

    async def execute(self, request: QueryRequest, credential: str | None) -> QueryOutcome:
        name = request.query.name

        if not credential:
            return self._fail(name, ServiceErrorKind.AUTH_FAILURE, "No credential configured for this slot")

        try:
            payload = await self._transport.send_query(
                request.query.document, request.variables, credential,
            )
        except httpx.HTTPStatusError as exc:
            kind = self._classify_status(exc.response)
            return self._fail(name, kind, f"HTTP {exc.response.status_code}", exc)
        except httpx.RequestError as exc:
            return self._fail(name, ServiceErrorKind.TRANSPORT_FAILURE, f"Request failed: {exc!r}", exc)
        except ValueError as exc:
            return self._fail(name, ServiceErrorKind.TRANSPORT_FAILURE, "Response body is not JSON", exc)

        if not isinstance(payload, dict):
            return self._fail(name, ServiceErrorKind.TRANSPORT_FAILURE, "Unexpected response shape")

        data = payload.get("data")
        user = data.get("user") if isinstance(data, dict) else None
        if not isinstance(user, dict) or not user:
            kind = self._classify_payload(payload)
            message = "Rate limit exceeded" if kind is ServiceErrorKind.RATE_LIMITED else "User not found"
            if payload.get("errors"):
                log.debug("GraphQL errors for %s: %s", name, payload["errors"])
            return self._fail(name, kind, message)

        try:
            entity = request.query.parse(user)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            return self._fail(name, ServiceErrorKind.NOT_FOUND, f"Malformed response: {exc!r}", exc)

        log.debug("Query %s succeeded", name)
        return Success(entity)

    @staticmethod
    def _fail(name: str,kind: ServiceErrorKind,message: str,cause: BaseException | None = None) -> Failure:
        log.debug("Query %s failed | kind=%s | %s", name, kind.value, message)
        return Failure(ServiceError(message, kind, cause))

    @staticmethod
    def _classify_status(response: httpx.Response) -> ServiceErrorKind:
        status = response.status_code
        if status == 401:
            return ServiceErrorKind.AUTH_FAILURE
        if status in (403, 429):
            if "rate limit" in response.text.lower():
                return ServiceErrorKind.RATE_LIMITED
            if status == 403:
                return ServiceErrorKind.AUTH_FAILURE
        return ServiceErrorKind.TRANSPORT_FAILURE

    @staticmethod
    def _classify_payload(payload: dict[str, Any]) -> ServiceErrorKind:
        """GitHub reports rate limiting either as typed errors or a bare message."""
        errors = payload.get("errors")
        if isinstance(errors, list):
            for err in errors:
                if not isinstance(err, dict):
                    continue
                if ServiceErrorKind.RATE_LIMITED.value in str(err.get("type", "")):
                    return ServiceErrorKind.RATE_LIMITED
                if "rate limit" in str(err.get("message", "")).lower():
                    return ServiceErrorKind.RATE_LIMITED

        message = payload.get("message")
        if isinstance(message, str) and "rate limit" in message.lower():
            return ServiceErrorKind.RATE_LIMITED
        return ServiceErrorKind.NOT_FOUND
