"""Subscription resolvers: live change feeds per owner.

Each field streams the records of one kind mutated under ``userId`` together
with the ``sourceClientId`` of the session that caused the change. Only the
owner (or the dev identity) may subscribe. Nothing is replayed: a feed
starts with the first change after the subscription is established.
"""

import logging
from typing import AsyncGenerator

import strawberry
from strawberry.types import Info

from mealsync.application.subscription_gateway import Delivery
from mealsync.domain.catalog.kinds import EntityKind
from mealsync.domain.shared.errors import MealSyncError
from mealsync.graphql_api.errors import graphql_error
from mealsync.graphql_api.permissions import IsAuthenticated
from mealsync.graphql_api.types import (
    Ingredient,
    IngredientUpdate,
    Meal,
    MealPlan,
    MealPlanUpdate,
    MealUpdate,
)

logger = logging.getLogger(__name__)


async def _deliveries(info: Info, kind: EntityKind, user_id: str) -> AsyncGenerator[Delivery, None]:
    context = info.context
    try:
        stream = context.service(kind).subscribe(await context.caller(), user_id)
    except MealSyncError as e:
        raise graphql_error(e)

    try:
        async for delivery in stream:
            yield delivery
    finally:
        stream.close()
        logger.debug("Subscriber disconnected", extra={"topic": stream.topic})


@strawberry.type
class Subscription:
    @strawberry.subscription(permission_classes=[IsAuthenticated])
    async def ingredient_updated(
        self, info: Info, user_id: str
    ) -> AsyncGenerator[IngredientUpdate, None]:
        async for delivery in _deliveries(info, EntityKind.INGREDIENT, user_id):
            yield IngredientUpdate(
                ingredient_updated=Ingredient.from_domain(delivery.record),
                source_client_id=delivery.source_client_id,
            )

    @strawberry.subscription(permission_classes=[IsAuthenticated])
    async def meal_updated(self, info: Info, user_id: str) -> AsyncGenerator[MealUpdate, None]:
        async for delivery in _deliveries(info, EntityKind.MEAL, user_id):
            yield MealUpdate(
                meal_updated=Meal.from_domain(delivery.record),
                source_client_id=delivery.source_client_id,
            )

    @strawberry.subscription(permission_classes=[IsAuthenticated])
    async def meal_plan_updated(
        self, info: Info, user_id: str
    ) -> AsyncGenerator[MealPlanUpdate, None]:
        """Example:
        subscription {
          mealPlanUpdated(userId: "u1") {
            mealPlanUpdated { id name items { itemId group quantity } }
            sourceClientId
          }
        }
        """
        async for delivery in _deliveries(info, EntityKind.MEAL_PLAN, user_id):
            yield MealPlanUpdate(
                meal_plan_updated=MealPlan.from_domain(delivery.record),
                source_client_id=delivery.source_client_id,
            )
