"""Query resolvers for ingredients, meals and meal plans.

Reads follow the same owner-or-dev rule as writes: a caller lists and
fetches only its own records.
"""

from typing import Any, Callable, List, TypeVar

import strawberry
from strawberry.types import Info

from mealsync.domain.catalog.kinds import EntityKind
from mealsync.domain.shared.errors import MealSyncError
from mealsync.graphql_api.errors import graphql_error
from mealsync.graphql_api.permissions import IsAuthenticated
from mealsync.graphql_api.types import Ingredient, Meal, MealPlan

T = TypeVar("T")


async def _list(info: Info, kind: EntityKind, user_id: str, mapper: Callable[[Any], T]) -> List[T]:
    context = info.context
    try:
        records = await context.service(kind).find(await context.caller(), user_id)
    except MealSyncError as e:
        raise graphql_error(e)
    return [mapper(record) for record in records]


async def _one(
    info: Info, kind: EntityKind, record_id: str, user_id: str, mapper: Callable[[Any], T]
) -> T:
    context = info.context
    try:
        record = await context.service(kind).find_by_id(
            await context.caller(), record_id, user_id=user_id
        )
    except MealSyncError as e:
        raise graphql_error(e)
    return mapper(record)


@strawberry.type
class Query:
    @strawberry.field
    def health(self) -> str:
        return "ok"

    @strawberry.field(permission_classes=[IsAuthenticated])
    async def ingredients(self, info: Info, user_id: str) -> List[Ingredient]:
        """Ingredients owned by ``userId``.

        Example:
            query { ingredients(userId: "u1") { id name macros { calories } } }
        """
        return await _list(info, EntityKind.INGREDIENT, user_id, Ingredient.from_domain)

    @strawberry.field(permission_classes=[IsAuthenticated])
    async def ingredient(self, info: Info, id: strawberry.ID, user_id: str) -> Ingredient:
        return await _one(info, EntityKind.INGREDIENT, str(id), user_id, Ingredient.from_domain)

    @strawberry.field(permission_classes=[IsAuthenticated])
    async def meals(self, info: Info, user_id: str) -> List[Meal]:
        return await _list(info, EntityKind.MEAL, user_id, Meal.from_domain)

    @strawberry.field(permission_classes=[IsAuthenticated])
    async def meal(self, info: Info, id: strawberry.ID, user_id: str) -> Meal:
        return await _one(info, EntityKind.MEAL, str(id), user_id, Meal.from_domain)

    @strawberry.field(permission_classes=[IsAuthenticated])
    async def meal_plans(self, info: Info, user_id: str) -> List[MealPlan]:
        return await _list(info, EntityKind.MEAL_PLAN, user_id, MealPlan.from_domain)

    @strawberry.field(permission_classes=[IsAuthenticated])
    async def meal_plan(self, info: Info, id: strawberry.ID, user_id: str) -> MealPlan:
        return await _one(info, EntityKind.MEAL_PLAN, str(id), user_id, MealPlan.from_domain)
