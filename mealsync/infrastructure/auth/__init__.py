"""Authentication adapters (JWT, middleware, credential extraction)."""

from mealsync.infrastructure.auth.auth_middleware import AuthMiddleware
from mealsync.infrastructure.auth.jwt_auth_service import JwtAuthService

__all__ = ["AuthMiddleware", "JwtAuthService"]
