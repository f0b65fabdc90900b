"""Mapping from domain exceptions to GraphQL error shapes."""

import logging
from typing import Optional

from graphql import GraphQLError

from mealsync.domain.shared.errors import (
    MealSyncError,
    RecordNotFoundError,
    UnauthorizedError,
    ValidationFailure,
)
from mealsync.graphql_api.types import MutationError

logger = logging.getLogger(__name__)

UNAUTHORIZED = "UNAUTHORIZED"
VALIDATION_ERROR = "VALIDATION_ERROR"
NOT_FOUND = "NOT_FOUND"
INTERNAL_ERROR = "INTERNAL_ERROR"


def error_code(error: Exception) -> str:
    if isinstance(error, UnauthorizedError):
        return UNAUTHORIZED
    if isinstance(error, ValidationFailure):
        return VALIDATION_ERROR
    if isinstance(error, RecordNotFoundError):
        return NOT_FOUND
    return INTERNAL_ERROR


def mutation_error(error: Exception) -> MutationError:
    """Union member returned by mutations instead of raising."""
    field: Optional[str] = error.field if isinstance(error, ValidationFailure) else None
    if not isinstance(error, MealSyncError):
        logger.error("Unexpected mutation failure", extra={"error": str(error)}, exc_info=error)
        return MutationError(message="Internal server error", code=INTERNAL_ERROR)
    return MutationError(message=str(error), code=error_code(error), field=field)


def graphql_error(error: MealSyncError) -> GraphQLError:
    """Error raised by queries and subscriptions."""
    return GraphQLError(str(error), extensions={"code": error_code(error)})
