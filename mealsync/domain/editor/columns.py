"""Columns and catalog items of the plan editor board."""

from dataclasses import dataclass
from enum import Enum
from typing import Union

from mealsync.domain.catalog.entities import Ingredient, Macros, Meal
from mealsync.domain.catalog.kinds import ITEM_TYPE_INGREDIENT, ITEM_TYPE_MEAL

INGREDIENT_STORE = "ingredients-store"
MEAL_STORE = "meals-store"
STORE_COLUMNS = (INGREDIENT_STORE, MEAL_STORE)

DEFAULT_GROUPS = ("Breakfast", "Lunch", "Dinner")
NEW_GROUP_TITLE = "New Group"


class ColumnType(str, Enum):
    INGREDIENT_STORE = "ingredient-store"
    MEAL_STORE = "meal-store"
    MEAL_PLAN = "meal-plan"


@dataclass
class Column:
    """One board column: a fixed store bucket or a plan group."""

    id: str
    title: str
    type: ColumnType

    @property
    def is_fixed(self) -> bool:
        """Store columns can be neither reordered nor removed."""
        return self.type is not ColumnType.MEAL_PLAN


def store_column_for(item_type: str) -> str:
    """Store column that accepts items of ``item_type``."""
    if item_type == ITEM_TYPE_INGREDIENT:
        return INGREDIENT_STORE
    if item_type == ITEM_TYPE_MEAL:
        return MEAL_STORE
    raise ValueError(f"Unknown item type: {item_type}")


@dataclass(frozen=True)
class CatalogItem:
    """Draggable card: what the editor needs to know about an entity."""

    id: str
    type: str
    name: str
    macros: Macros
    price: float = 0.0

    @classmethod
    def from_entity(cls, entity: Union[Ingredient, Meal]) -> "CatalogItem":
        item_type = ITEM_TYPE_INGREDIENT if isinstance(entity, Ingredient) else ITEM_TYPE_MEAL
        return cls(
            id=entity.id,
            type=item_type,
            name=entity.name,
            macros=entity.macros,
            price=entity.price or 0.0,
        )
