"""GraphQL context factory for dependency injection.

Provides the resolvers with:
- Entity services (one per kind)
- Auth service (lazy identity resolution for WebSocket connections)
- Caller context (identity and origin client id)
"""

from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from strawberry.fastapi import BaseContext

from mealsync.application.entity_service import EntityService
from mealsync.application.ownership import CallerContext
from mealsync.domain.catalog.kinds import EntityKind
from mealsync.domain.shared.identity import Identity
from mealsync.domain.shared.ports.auth_service import IAuthService
from mealsync.infrastructure.auth.credentials import (
    client_id_from_connection,
    credentials_from_connection,
)


class GraphQLContext(BaseContext):
    """GraphQL context with all dependencies.

    This context is injected into all GraphQL resolvers via the
    ``info`` parameter. Resolvers access dependencies using
    ``info.context.get("services")`` or the typed helpers.

    HTTP requests arrive with the identity already resolved by
    AuthMiddleware (``request.state.identity``). WebSocket connections
    bypass the middleware, so their identity is resolved on first use from
    headers, cookies and the ``connection_init`` parameters.

    Attributes:
        services: Entity services by kind
        auth_service: Used to authenticate WebSocket callers
        identity: Preset identity (tests and in-process callers)
        client_id: Preset origin client id
    """

    def __init__(
        self,
        services: Mapping[EntityKind, EntityService[Any]],
        auth_service: Optional[IAuthService] = None,
        identity: Optional[Identity] = None,
        client_id: Optional[str] = None,
    ) -> None:
        super().__init__()
        if not hasattr(self, "connection_params"):
            self.connection_params: Optional[Dict[str, Any]] = None
        self.services = dict(services)
        self.auth_service = auth_service
        self.identity = identity
        self.client_id = client_id
        self._caller: Optional[CallerContext] = None

    def get(self, key: str) -> Any:
        """Get dependency by name (for resolver compatibility).

        Example:
            >>> services = info.context.get("services")
        """
        return getattr(self, key, None)

    def service(self, kind: EntityKind) -> EntityService[Any]:
        return self.services[kind]

    async def caller(self) -> CallerContext:
        """Identity and origin client id of the current operation."""
        if self._caller is not None:
            return self._caller

        connection = self.request
        if connection is None:
            self._caller = CallerContext(identity=self.identity, client_id=self.client_id)
            return self._caller

        params = self.connection_params if isinstance(self.connection_params, Mapping) else None
        identity = getattr(connection.state, "identity", None) or self.identity
        if identity is None and self.auth_service is not None:
            identity = await self.auth_service.authenticate(
                credentials_from_connection(connection, params)
            )

        caller = CallerContext(
            identity=identity,
            client_id=client_id_from_connection(connection, params) or self.client_id,
        )
        # Cache only once the WebSocket handshake parameters are known
        if params is not None or connection.scope.get("type") == "http":
            self._caller = caller
        return caller


def create_context_getter(
    services: Mapping[EntityKind, EntityService[Any]],
    auth_service: Optional[IAuthService] = None,
) -> Callable[[], Awaitable[GraphQLContext]]:
    """Build the ``context_getter`` dependency for GraphQLRouter.

    Example:
        >>> router = GraphQLRouter(schema, context_getter=create_context_getter(services, auth))
    """

    async def get_graphql_context() -> GraphQLContext:
        return GraphQLContext(services=services, auth_service=auth_service)

    return get_graphql_context
