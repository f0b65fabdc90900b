"""Meal plan persistence used by the editor session."""

from typing import Any, Mapping, Optional, Protocol

from mealsync.application.entity_service import EntityService
from mealsync.application.ownership import CallerContext
from mealsync.client.api import MealSyncApi
from mealsync.domain.catalog.entities import MealPlan


class IPlanPersistence(Protocol):
    async def save(self, plan_input: Mapping[str, Any], plan_id: Optional[str]) -> MealPlan:
        """Create the plan when ``plan_id`` is None, update it otherwise."""
        ...


class GraphQLPlanPersistence:
    """Saves through the GraphQL API (remote clients)."""

    def __init__(self, api: MealSyncApi) -> None:
        self.api = api

    async def save(self, plan_input: Mapping[str, Any], plan_id: Optional[str]) -> MealPlan:
        if plan_id is None:
            return await self.api.create_meal_plan(plan_input)
        return await self.api.update_meal_plan(plan_id, plan_input)


class ServicePlanPersistence:
    """Saves through an in-process entity service."""

    def __init__(self, service: EntityService[MealPlan], caller: CallerContext) -> None:
        self.service = service
        self.caller = caller

    async def save(self, plan_input: Mapping[str, Any], plan_id: Optional[str]) -> MealPlan:
        if plan_id is None:
            return await self.service.create(self.caller, plan_input)
        return await self.service.update_by_id(
            self.caller, plan_id, plan_input, user_id=plan_input.get("user_id")
        )
