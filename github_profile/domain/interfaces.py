"""
Domain Layer — Interfaces (Abstract Contracts)
-----------------------------------------------
The application layer depends on these, never on the httpx-backed
classes in infrastructure/. Tests swap in fakes without touching
GithubApiService.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Mapping

from .entities import QueryOutcome, QueryRequest


class IGraphQLTransport(ABC):
    """
    Sends one GraphQL document to the remote endpoint.

    Does not interpret the response beyond decoding JSON; failures
    surface as exceptions (httpx errors, or ValueError for a body that
    is not JSON).
    """

    @abstractmethod
    async def send_query(self,document: str,variables: Mapping[str, str],credential: str) -> dict[str, Any]:
        """Return the decoded response body."""
        ...


class IQueryExecutor(ABC):
    """
    Runs one QueryRequest with one credential.

    Never raises: every path resolves to Success(entity) or
    Failure(ServiceError).
    """

    @abstractmethod
    async def execute(self, request: QueryRequest, credential: str | None) -> QueryOutcome:
        ...
