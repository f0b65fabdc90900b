"""Strawberry GraphQL permission for authenticated callers."""

import logging
from typing import Any

from strawberry.permission import BasePermission
from strawberry.types import Info

logger = logging.getLogger(__name__)


class IsAuthenticated(BasePermission):
    """Permission checker for authenticated callers.

    Ownership is checked later by the entity services; this only rejects
    anonymous calls early.

    Examples:
        @strawberry.field(permission_classes=[IsAuthenticated])
        async def meal_plans(self, info: Info, user_id: str) -> List[MealPlan]:
            ...
    """

    message = "Not authenticated"

    async def has_permission(self, source: Any, info: Info, **kwargs: Any) -> bool:
        caller = await info.context.caller()

        if caller.identity is None:
            logger.warning("Permission denied: no identity in context")
            return False

        logger.debug("Permission granted", extra={"caller": caller.identity.id})
        return True
