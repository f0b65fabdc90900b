"""Owned catalog entities (ingredients, meals, meal plans)."""

from mealsync.domain.catalog.entities import (
    DEFAULT_GROUP,
    ENTITY_CLASSES,
    Entity,
    Ingredient,
    Macros,
    Meal,
    MealIngredient,
    MealPlan,
    MealPlanItem,
    new_record_id,
)
from mealsync.domain.catalog.kinds import (
    EntityKind,
    ITEM_TYPE_INGREDIENT,
    ITEM_TYPE_MEAL,
    ITEM_TYPES,
)

__all__ = [
    "DEFAULT_GROUP",
    "ENTITY_CLASSES",
    "Entity",
    "EntityKind",
    "ITEM_TYPE_INGREDIENT",
    "ITEM_TYPE_MEAL",
    "ITEM_TYPES",
    "Ingredient",
    "Macros",
    "Meal",
    "MealIngredient",
    "MealPlan",
    "MealPlanItem",
    "new_record_id",
]
