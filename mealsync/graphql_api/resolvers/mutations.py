"""Mutation resolvers for ingredients, meals and meal plans.

Single-record mutations (create, updateById, removeById, updateOne,
removeOne) publish a change event to the owner's subscribers. Batch
mutations (createMany, removeMany) are authorized the same way but publish
nothing.

Every mutation answers with a payload or a MutationError carrying a code:
UNAUTHORIZED, VALIDATION_ERROR or NOT_FOUND.
"""

from typing import Any, Awaitable, Callable, List, Optional

import strawberry
from strawberry.types import Info

from mealsync.domain.catalog.kinds import EntityKind
from mealsync.graphql_api.errors import mutation_error
from mealsync.graphql_api.types import (
    BatchPayload,
    BatchResult,
    Ingredient,
    IngredientInput,
    IngredientPatch,
    IngredientPayload,
    IngredientResult,
    Meal,
    MealInput,
    MealPatch,
    MealPayload,
    MealPlan,
    MealPlanInput,
    MealPlanPatch,
    MealPlanPayload,
    MealPlanResult,
    MealResult,
    RecordFilter,
    to_record,
)


async def _run(
    info: Info,
    kind: EntityKind,
    operation: str,
    wrap: Callable[[Any], Any],
    *args: Any,
    **kwargs: Any,
) -> Any:
    """Call ``service.<operation>(caller, *args)`` and map the outcome."""
    context = info.context
    service = context.service(kind)
    call: Callable[..., Awaitable[Any]] = getattr(service, operation)
    try:
        result = await call(await context.caller(), *args, **kwargs)
    except Exception as e:
        return mutation_error(e)
    return wrap(result)


def _batch_created(records: List[Any]) -> BatchPayload:
    return BatchPayload(count=len(records), ids=[r.id for r in records])


def _batch_removed(count: int) -> BatchPayload:
    return BatchPayload(count=count)


def _ingredient(entity: Any) -> IngredientPayload:
    return IngredientPayload(ingredient=Ingredient.from_domain(entity))


def _meal(entity: Any) -> MealPayload:
    return MealPayload(meal=Meal.from_domain(entity))


def _meal_plan(entity: Any) -> MealPlanPayload:
    return MealPlanPayload(meal_plan=MealPlan.from_domain(entity))


@strawberry.type
class IngredientMutations:
    """Mutations for ingredients."""

    @strawberry.mutation
    async def create(self, info: Info, input: IngredientInput) -> IngredientResult:
        """Create an ingredient owned by ``input.userId``.

        Example:
            mutation {
              ingredients {
                create(input: {userId: "u1", name: "Rice", unit: "g", macros: {...}}) {
                  ... on IngredientPayload { ingredient { id } }
                  ... on MutationError { message code }
                }
              }
            }
        """
        return await _run(info, EntityKind.INGREDIENT, "create", _ingredient, to_record(input))

    @strawberry.mutation
    async def update_by_id(
        self, info: Info, id: strawberry.ID, input: IngredientPatch, user_id: Optional[str] = None
    ) -> IngredientResult:
        return await _run(
            info,
            EntityKind.INGREDIENT,
            "update_by_id",
            _ingredient,
            str(id),
            to_record(input),
            user_id=user_id,
        )

    @strawberry.mutation
    async def remove_by_id(
        self, info: Info, id: strawberry.ID, user_id: Optional[str] = None
    ) -> IngredientResult:
        return await _run(
            info, EntityKind.INGREDIENT, "remove_by_id", _ingredient, str(id), user_id=user_id
        )

    @strawberry.mutation
    async def update_one(
        self, info: Info, filter: RecordFilter, input: IngredientPatch
    ) -> IngredientResult:
        return await _run(
            info,
            EntityKind.INGREDIENT,
            "update_one",
            _ingredient,
            to_record(filter),
            to_record(input),
        )

    @strawberry.mutation
    async def remove_one(self, info: Info, filter: RecordFilter) -> IngredientResult:
        return await _run(info, EntityKind.INGREDIENT, "remove_one", _ingredient, to_record(filter))

    @strawberry.mutation
    async def create_many(self, info: Info, inputs: List[IngredientInput]) -> BatchResult:
        records = [to_record(i) for i in inputs]
        return await _run(info, EntityKind.INGREDIENT, "create_many", _batch_created, records)

    @strawberry.mutation
    async def remove_many(self, info: Info, user_id: str) -> BatchResult:
        return await _run(info, EntityKind.INGREDIENT, "remove_many", _batch_removed, user_id)


@strawberry.type
class MealMutations:
    """Mutations for meals."""

    @strawberry.mutation
    async def create(self, info: Info, input: MealInput) -> MealResult:
        return await _run(info, EntityKind.MEAL, "create", _meal, to_record(input))

    @strawberry.mutation
    async def update_by_id(
        self, info: Info, id: strawberry.ID, input: MealPatch, user_id: Optional[str] = None
    ) -> MealResult:
        return await _run(
            info, EntityKind.MEAL, "update_by_id", _meal, str(id), to_record(input), user_id=user_id
        )

    @strawberry.mutation
    async def remove_by_id(
        self, info: Info, id: strawberry.ID, user_id: Optional[str] = None
    ) -> MealResult:
        return await _run(info, EntityKind.MEAL, "remove_by_id", _meal, str(id), user_id=user_id)

    @strawberry.mutation
    async def update_one(self, info: Info, filter: RecordFilter, input: MealPatch) -> MealResult:
        return await _run(
            info,
            EntityKind.MEAL,
            "update_one",
            _meal,
            to_record(filter),
            to_record(input),
        )

    @strawberry.mutation
    async def remove_one(self, info: Info, filter: RecordFilter) -> MealResult:
        return await _run(info, EntityKind.MEAL, "remove_one", _meal, to_record(filter))

    @strawberry.mutation
    async def create_many(self, info: Info, inputs: List[MealInput]) -> BatchResult:
        records = [to_record(i) for i in inputs]
        return await _run(info, EntityKind.MEAL, "create_many", _batch_created, records)

    @strawberry.mutation
    async def remove_many(self, info: Info, user_id: str) -> BatchResult:
        return await _run(info, EntityKind.MEAL, "remove_many", _batch_removed, user_id)


@strawberry.type
class MealPlanMutations:
    """Mutations for meal plans."""

    @strawberry.mutation
    async def create(self, info: Info, input: MealPlanInput) -> MealPlanResult:
        return await _run(info, EntityKind.MEAL_PLAN, "create", _meal_plan, to_record(input))

    @strawberry.mutation
    async def update_by_id(
        self, info: Info, id: strawberry.ID, input: MealPlanPatch, user_id: Optional[str] = None
    ) -> MealPlanResult:
        """Update a meal plan.

        Subscribers of ``MEAL_PLAN_UPDATED.<owner>`` receive the new state.
        The owner is taken from ``userId``, else from ``input.userId``; when
        neither is given only the dev identity may update, and nothing is
        published.
        """
        return await _run(
            info,
            EntityKind.MEAL_PLAN,
            "update_by_id",
            _meal_plan,
            str(id),
            to_record(input),
            user_id=user_id,
        )

    @strawberry.mutation
    async def remove_by_id(
        self, info: Info, id: strawberry.ID, user_id: Optional[str] = None
    ) -> MealPlanResult:
        return await _run(
            info, EntityKind.MEAL_PLAN, "remove_by_id", _meal_plan, str(id), user_id=user_id
        )

    @strawberry.mutation
    async def update_one(
        self, info: Info, filter: RecordFilter, input: MealPlanPatch
    ) -> MealPlanResult:
        """Update the first meal plan matching ``filter``.

        The owner is ``filter.userId`` (else ``input.userId``); the change is
        published on ``MEAL_PLAN_UPDATED.<owner>``.
        """
        return await _run(
            info,
            EntityKind.MEAL_PLAN,
            "update_one",
            _meal_plan,
            to_record(filter),
            to_record(input),
        )

    @strawberry.mutation
    async def remove_one(self, info: Info, filter: RecordFilter) -> MealPlanResult:
        return await _run(info, EntityKind.MEAL_PLAN, "remove_one", _meal_plan, to_record(filter))

    @strawberry.mutation
    async def create_many(self, info: Info, inputs: List[MealPlanInput]) -> BatchResult:
        records = [to_record(i) for i in inputs]
        return await _run(info, EntityKind.MEAL_PLAN, "create_many", _batch_created, records)

    @strawberry.mutation
    async def remove_many(self, info: Info, user_id: str) -> BatchResult:
        return await _run(info, EntityKind.MEAL_PLAN, "remove_many", _batch_removed, user_id)


@strawberry.type
class Mutation:
    @strawberry.field(description="Ingredient mutations")  # type: ignore[misc]
    def ingredients(self) -> IngredientMutations:
        return IngredientMutations()

    @strawberry.field(description="Meal mutations")  # type: ignore[misc]
    def meals(self) -> MealMutations:
        return MealMutations()

    @strawberry.field(description="Meal plan mutations")  # type: ignore[misc]
    def meal_plans(self) -> MealPlanMutations:
        return MealPlanMutations()

