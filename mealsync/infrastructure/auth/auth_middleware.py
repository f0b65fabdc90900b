"""FastAPI authentication middleware."""

import logging
from typing import Any, Iterable

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from mealsync.domain.shared.ports.auth_service import IAuthService
from mealsync.infrastructure.auth.credentials import (
    client_id_from_connection,
    credentials_from_connection,
)

logger = logging.getLogger(__name__)

PUBLIC_PATHS = ("/health", "/version")


class AuthMiddleware(BaseHTTPMiddleware):
    """FastAPI middleware resolving the caller identity.

    Sets ``request.state.identity`` (Identity or None) and
    ``request.state.client_id`` for downstream handlers.

    Features:
    - Bearer token or ``token`` cookie
    - ``x-dev-token`` developer override (when enabled on the auth service)
    - Optional enforcement: with ``auth_required`` anonymous requests get 401,
      except the public health endpoints

    Examples:
        >>> app.add_middleware(AuthMiddleware, auth_service=service)
        >>> # In route handler:
        >>> identity = request.state.identity
    """

    def __init__(
        self,
        app: Any,
        auth_service: IAuthService,
        auth_required: bool = False,
        public_paths: Iterable[str] = PUBLIC_PATHS,
    ) -> None:
        super().__init__(app)
        self.auth_service = auth_service
        self.auth_required = auth_required
        self.public_paths = tuple(public_paths)

    async def dispatch(self, request: Request, call_next: Any) -> Any:
        identity = await self.auth_service.authenticate(credentials_from_connection(request))
        request.state.identity = identity
        request.state.client_id = client_id_from_connection(request)

        if identity is None and self.auth_required and request.url.path not in self.public_paths:
            logger.info("Rejected anonymous request", extra={"path": request.url.path})
            return JSONResponse(
                status_code=status.HTTP_401_UNAUTHORIZED,
                content={"error": "unauthorized", "message": "Missing or invalid token"},
            )

        return await call_next(request)
