"""GraphQL over HTTP client (httpx).

Every request carries the session headers (``x-client-id`` and, when
known, the bearer token) so that the server can tag change events with
their origin. Read queries are retried with exponential backoff on
transient failures; mutations are never retried.
"""

import os
from typing import Any, Dict, List, Mapping, Optional

import httpx
import structlog
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from mealsync.client.session import ClientSession

logger = structlog.get_logger(__name__)

DEFAULT_ENDPOINT = "http://localhost:8080/graphql"


class TransportError(Exception):
    """GraphQL request failed (HTTP status, network or GraphQL errors)."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        errors: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.errors = errors or []


class TransientTransportError(TransportError):
    """Network failure or 5xx response; safe to retry for reads."""


class GraphQLHttpClient:
    """Async GraphQL client bound to one ClientSession.

    Example:
        >>> async with GraphQLHttpClient(session) as client:
        ...     data = await client.query(PLANS_QUERY, {"userId": session.owner_id})
    """

    def __init__(
        self,
        session: ClientSession,
        endpoint: Optional[str] = None,
        timeout: float = 10.0,
        max_attempts: int = 3,
        backoff: float = 0.5,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        """Initialize client.

        Args:
            session: Session whose headers tag every request
            endpoint: GraphQL URL (defaults to MEALSYNC_GRAPHQL_ENDPOINT)
            timeout: Per-request timeout in seconds
            max_attempts: Attempts for read queries
            backoff: Exponential backoff multiplier (seconds)
            transport: Custom httpx transport (tests)
        """
        self.session = session
        self.endpoint = endpoint or os.getenv("MEALSYNC_GRAPHQL_ENDPOINT", DEFAULT_ENDPOINT)
        self.timeout = timeout
        self.max_attempts = max_attempts
        self.backoff = backoff
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> "GraphQLHttpClient":
        """Async context manager entry."""
        self._client = httpx.AsyncClient(
            timeout=httpx.Timeout(self.timeout), transport=self._transport
        )
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def query(
        self, document: str, variables: Optional[Mapping[str, Any]] = None
    ) -> Dict[str, Any]:
        """Run a read query, retrying transient failures.

        Raises:
            TransportError: After the last attempt, or on a non-transient error
        """
        async for attempt in AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_exponential(multiplier=self.backoff, max=10),
            retry=retry_if_exception_type(TransientTransportError),
            reraise=True,
        ):
            with attempt:
                return await self._post(document, variables)
        raise TransportError("unreachable")  # pragma: no cover

    async def mutate(
        self, document: str, variables: Optional[Mapping[str, Any]] = None
    ) -> Dict[str, Any]:
        """Run a mutation once (never retried)."""
        return await self._post(document, variables)

    async def _post(
        self, document: str, variables: Optional[Mapping[str, Any]]
    ) -> Dict[str, Any]:
        if self._client is None:
            raise RuntimeError("Client not initialized. Use async context manager.")

        payload = {"query": document, "variables": dict(variables or {})}
        try:
            response = await self._client.post(
                self.endpoint, json=payload, headers=self.session.headers()
            )
        except httpx.TransportError as e:
            logger.warning("graphql.network_error", endpoint=self.endpoint, error=str(e))
            raise TransientTransportError(f"Network error: {e}") from e

        if response.status_code >= 500:
            logger.warning("graphql.server_error", status=response.status_code)
            raise TransientTransportError(
                f"Server error {response.status_code}", status_code=response.status_code
            )
        if response.status_code >= 400:
            raise TransportError(
                f"HTTP {response.status_code}", status_code=response.status_code
            )

        body = response.json()
        errors = body.get("errors")
        if errors:
            message = "; ".join(str(e.get("message", e)) for e in errors)
            logger.info("graphql.errors", count=len(errors), message=message)
            raise TransportError(message, status_code=response.status_code, errors=errors)

        data: Dict[str, Any] = body.get("data") or {}
        return data
