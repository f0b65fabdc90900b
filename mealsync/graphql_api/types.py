"""GraphQL types for ingredients, meals and meal plans.

Output types mirror the domain entities; input types carry the fields a
client may send on create (``...Input``) or update (``...Patch``, every
field optional). Mutations answer with a payload or a MutationError.
"""

from __future__ import annotations

import dataclasses
from typing import Annotated, Any, Dict, List, Optional, Union

import strawberry

from mealsync.domain.catalog import entities as domain

__all__ = [
    "Macros",
    "Ingredient",
    "MealIngredient",
    "Meal",
    "MealPlanItem",
    "MealPlan",
    "MacrosInput",
    "MacrosPatch",
    "IngredientInput",
    "IngredientPatch",
    "MealIngredientInput",
    "MealInput",
    "MealPatch",
    "MealPlanItemInput",
    "MealPlanInput",
    "MealPlanPatch",
    "RecordFilter",
    "IngredientPayload",
    "MealPayload",
    "MealPlanPayload",
    "BatchPayload",
    "MutationError",
    "IngredientResult",
    "MealResult",
    "MealPlanResult",
    "BatchResult",
    "IngredientUpdate",
    "MealUpdate",
    "MealPlanUpdate",
    "to_record",
]


# ============================================
# OUTPUT TYPES
# ============================================


@strawberry.type
class Macros:
    """Nutrition vector."""

    calories: float
    protein: float
    carbs: float
    fat: float

    @classmethod
    def from_domain(cls, macros: domain.Macros) -> Macros:
        return cls(
            calories=macros.calories, protein=macros.protein, carbs=macros.carbs, fat=macros.fat
        )


@strawberry.type
class Ingredient:
    id: str
    user_id: str
    name: str
    unit: str
    quantity: Optional[float]
    macros: Macros
    price: float

    @classmethod
    def from_domain(cls, entity: domain.Ingredient) -> Ingredient:
        return cls(
            id=entity.id,
            user_id=entity.user_id,
            name=entity.name,
            unit=entity.unit,
            quantity=entity.quantity,
            macros=Macros.from_domain(entity.macros),
            price=entity.price,
        )


@strawberry.type
class MealIngredient:
    ingredient_id: str
    quantity: float


@strawberry.type
class Meal:
    id: str
    user_id: str
    name: str
    ingredients: List[MealIngredient]
    macros: Macros
    price: float

    @classmethod
    def from_domain(cls, entity: domain.Meal) -> Meal:
        return cls(
            id=entity.id,
            user_id=entity.user_id,
            name=entity.name,
            ingredients=[
                MealIngredient(ingredient_id=i.ingredient_id, quantity=i.quantity)
                for i in entity.ingredients
            ],
            macros=Macros.from_domain(entity.macros),
            price=entity.price,
        )


@strawberry.type
class MealPlanItem:
    """Ingredient or meal placed in a named group."""

    type: str
    item_id: str
    quantity: float
    group: str


@strawberry.type
class MealPlan:
    id: str
    user_id: str
    name: str
    items: List[MealPlanItem]
    macros: Macros
    price: float

    @classmethod
    def from_domain(cls, entity: domain.MealPlan) -> MealPlan:
        return cls(
            id=entity.id,
            user_id=entity.user_id,
            name=entity.name,
            items=[
                MealPlanItem(type=i.type, item_id=i.item_id, quantity=i.quantity, group=i.group)
                for i in entity.items
            ],
            macros=Macros.from_domain(entity.macros),
            price=entity.price,
        )


# ============================================
# INPUT TYPES
# ============================================


@strawberry.input
class MacrosInput:
    calories: float
    protein: float
    carbs: float
    fat: float


@strawberry.input
class MacrosPatch:
    calories: Optional[float] = None
    protein: Optional[float] = None
    carbs: Optional[float] = None
    fat: Optional[float] = None


@strawberry.input
class IngredientInput:
    user_id: str
    name: str
    unit: str
    macros: MacrosInput
    price: float = 0.0
    quantity: Optional[float] = None


@strawberry.input
class IngredientPatch:
    user_id: Optional[str] = None
    name: Optional[str] = None
    unit: Optional[str] = None
    macros: Optional[MacrosPatch] = None
    price: Optional[float] = None
    quantity: Optional[float] = None


@strawberry.input
class MealIngredientInput:
    ingredient_id: str
    quantity: float


@strawberry.input
class MealInput:
    user_id: str
    name: str
    macros: MacrosInput
    ingredients: List[MealIngredientInput] = strawberry.field(default_factory=list)
    price: float = 0.0


@strawberry.input
class MealPatch:
    user_id: Optional[str] = None
    name: Optional[str] = None
    ingredients: Optional[List[MealIngredientInput]] = None
    macros: Optional[MacrosPatch] = None
    price: Optional[float] = None


@strawberry.input
class MealPlanItemInput:
    type: str
    item_id: str
    quantity: float = 1.0
    group: str = domain.DEFAULT_GROUP


@strawberry.input
class MealPlanInput:
    user_id: str
    name: str
    items: List[MealPlanItemInput] = strawberry.field(default_factory=list)
    macros: Optional[MacrosInput] = None
    price: float = 0.0


@strawberry.input
class MealPlanPatch:
    user_id: Optional[str] = None
    name: Optional[str] = None
    items: Optional[List[MealPlanItemInput]] = None
    macros: Optional[MacrosPatch] = None
    price: Optional[float] = None


@strawberry.input
class RecordFilter:
    """Equality filter selecting a single record for updateOne / removeOne."""

    id: Optional[strawberry.ID] = None
    user_id: Optional[str] = None
    name: Optional[str] = None


def to_record(value: Any) -> Dict[str, Any]:
    """Convert a strawberry input into a plain record, dropping unset fields."""
    raw = dataclasses.asdict(value)

    def prune(data: Any) -> Any:
        if isinstance(data, dict):
            return {k: prune(v) for k, v in data.items() if v is not None}
        if isinstance(data, list):
            return [prune(v) for v in data]
        return data

    return prune(raw)  # type: ignore[no-any-return]


# ============================================
# MUTATION RESULT TYPES
# ============================================


@strawberry.type
class IngredientPayload:
    ingredient: Ingredient


@strawberry.type
class MealPayload:
    meal: Meal


@strawberry.type
class MealPlanPayload:
    meal_plan: MealPlan


@strawberry.type
class BatchPayload:
    """Result of a batch operation (never published to subscribers)."""

    count: int
    ids: List[str] = strawberry.field(default_factory=list)


@strawberry.type
class MutationError:
    """Mutation failure.

    Codes: UNAUTHORIZED, VALIDATION_ERROR, NOT_FOUND, INTERNAL_ERROR
    """

    message: str
    code: str = "INTERNAL_ERROR"
    field: Optional[str] = None


IngredientResult = Annotated[
    Union[IngredientPayload, MutationError],
    strawberry.union("IngredientResult"),
]

MealResult = Annotated[
    Union[MealPayload, MutationError],
    strawberry.union("MealResult"),
]

MealPlanResult = Annotated[
    Union[MealPlanPayload, MutationError],
    strawberry.union("MealPlanResult"),
]

BatchResult = Annotated[
    Union[BatchPayload, MutationError],
    strawberry.union("BatchResult"),
]


# ============================================
# SUBSCRIPTION PAYLOAD TYPES
# ============================================


@strawberry.type
class IngredientUpdate:
    ingredient_updated: Ingredient
    source_client_id: Optional[str] = None


@strawberry.type
class MealUpdate:
    meal_updated: Meal
    source_client_id: Optional[str] = None


@strawberry.type
class MealPlanUpdate:
    meal_plan_updated: MealPlan
    source_client_id: Optional[str] = None
