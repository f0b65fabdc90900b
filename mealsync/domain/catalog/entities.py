"""Owned catalog entities: Ingredient, Meal, MealPlan.

Every entity belongs to exactly one owner (``user_id``) for its whole
lifetime. Entities are built from plain records (dicts with snake_case keys)
and validate themselves on construction; invalid input raises
ValidationFailure.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Type, Union
from uuid import uuid4

from mealsync.domain.catalog.kinds import EntityKind, ITEM_TYPES
from mealsync.domain.shared.errors import ValidationFailure

MAX_CALORIES = 10000.0
MAX_MACRO = 500.0
MAX_UNIT_LENGTH = 10
DEFAULT_GROUP = "General"


def new_record_id() -> str:
    """Generate an opaque record identifier."""
    return uuid4().hex


def _require_text(value: Any, field_name: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise ValidationFailure(f"{field_name} is required", field=field_name)
    return value.strip()


def _number(value: Any, field_name: str, default: Optional[float] = None) -> float:
    if value is None:
        if default is None:
            raise ValidationFailure(f"{field_name} is required", field=field_name)
        return default
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValidationFailure(f"{field_name} must be a number", field=field_name)
    number = float(value)
    if math.isnan(number) or math.isinf(number):
        raise ValidationFailure(f"{field_name} must be finite", field=field_name)
    return number


def _non_negative(value: Any, field_name: str, default: Optional[float] = None) -> float:
    number = _number(value, field_name, default)
    if number < 0:
        raise ValidationFailure(f"{field_name} must be >= 0, got {number}", field=field_name)
    return number


@dataclass(frozen=True)
class Macros:
    """Nutrition vector.

    Value object supporting addition and scaling, used both for stored
    entity macros and for derived plan totals.

    Examples:
        >>> rice = Macros(calories=200, protein=4, carbs=45, fat=0)
        >>> oil = Macros(calories=120, protein=0, carbs=0, fat=14)
        >>> rice + oil.scale(0.5)
        Macros(calories=260.0, protein=4.0, carbs=45.0, fat=7.0)
    """

    calories: float = 0.0
    protein: float = 0.0
    carbs: float = 0.0
    fat: float = 0.0

    @classmethod
    def from_record(cls, data: Optional[Mapping[str, Any]], required: bool = False) -> "Macros":
        """Build macros from a record, validating ranges.

        Args:
            data: Mapping with calories/protein/carbs/fat
            required: When True every field must be present (ingredients, meals)

        Raises:
            ValidationFailure: On missing, negative or out-of-range values
        """
        if data is None:
            if required:
                raise ValidationFailure("macros is required", field="macros")
            return cls()

        default = None if required else 0.0
        calories = _non_negative(data.get("calories"), "macros.calories", default)
        protein = _non_negative(data.get("protein"), "macros.protein", default)
        carbs = _non_negative(data.get("carbs"), "macros.carbs", default)
        fat = _non_negative(data.get("fat"), "macros.fat", default)

        if calories > MAX_CALORIES:
            raise ValidationFailure(
                f"macros.calories must be <= {MAX_CALORIES:g}", field="macros.calories"
            )
        for name, value in (("protein", protein), ("carbs", carbs), ("fat", fat)):
            if value > MAX_MACRO:
                raise ValidationFailure(
                    f"macros.{name} must be <= {MAX_MACRO:g}", field=f"macros.{name}"
                )

        return cls(calories=calories, protein=protein, carbs=carbs, fat=fat)

    def __add__(self, other: "Macros") -> "Macros":
        return Macros(
            calories=self.calories + other.calories,
            protein=self.protein + other.protein,
            carbs=self.carbs + other.carbs,
            fat=self.fat + other.fat,
        )

    def scale(self, factor: float) -> "Macros":
        """Return macros multiplied by ``factor`` (a quantity)."""
        return Macros(
            calories=self.calories * factor,
            protein=self.protein * factor,
            carbs=self.carbs * factor,
            fat=self.fat * factor,
        )

    def to_record(self) -> Dict[str, float]:
        return {
            "calories": self.calories,
            "protein": self.protein,
            "carbs": self.carbs,
            "fat": self.fat,
        }


@dataclass(frozen=True)
class MealPlanItem:
    """One ingredient or meal placed in a named group of a plan.

    Has no identity of its own: it only exists inside its MealPlan's item list.
    """

    type: str
    item_id: str
    quantity: float
    group: str = DEFAULT_GROUP

    def __post_init__(self) -> None:
        if self.type not in ITEM_TYPES:
            raise ValidationFailure(f"Invalid item type: {self.type}", field="items.type")
        if not self.item_id:
            raise ValidationFailure("items.item_id is required", field="items.item_id")
        if self.quantity <= 0:
            raise ValidationFailure(
                f"items.quantity must be > 0, got {self.quantity}", field="items.quantity"
            )

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> "MealPlanItem":
        group = data.get("group")
        return cls(
            type=str(data.get("type") or ""),
            item_id=str(data.get("item_id") or ""),
            quantity=_number(data.get("quantity"), "items.quantity"),
            group=group.strip() if isinstance(group, str) and group.strip() else DEFAULT_GROUP,
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "type": self.type,
            "item_id": self.item_id,
            "quantity": self.quantity,
            "group": self.group,
        }


@dataclass(frozen=True)
class MealIngredient:
    """Reference from a Meal to one of the owner's ingredients."""

    ingredient_id: str
    quantity: float

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> "MealIngredient":
        ingredient_id = data.get("ingredient_id")
        if not ingredient_id:
            raise ValidationFailure(
                "ingredients.ingredient_id is required", field="ingredients.ingredient_id"
            )
        return cls(
            ingredient_id=str(ingredient_id),
            quantity=_non_negative(data.get("quantity"), "ingredients.quantity"),
        )

    def to_record(self) -> Dict[str, Any]:
        return {"ingredient_id": self.ingredient_id, "quantity": self.quantity}


@dataclass
class _OwnedEntity:
    """Fields and record plumbing shared by every owned entity."""

    kind: ClassVar[EntityKind]

    id: str
    user_id: str
    name: str

    def _validate_identity(self) -> None:
        if not self.id:
            raise ValidationFailure("id is required", field="id")
        self.user_id = _require_text(self.user_id, "user_id")
        self.name = _require_text(self.name, "name")

    def to_record(self) -> Dict[str, Any]:  # pragma: no cover - overridden
        raise NotImplementedError

    def patched(self, patch: Mapping[str, Any]) -> "_OwnedEntity":
        """Return a new entity with ``patch`` applied on top of this one.

        ``macros`` patches are merged field by field. ``id`` is ignored.

        Raises:
            ValidationFailure: If the patch changes the owner or yields an
                invalid entity
        """
        new_owner = patch.get("user_id")
        if new_owner is not None and new_owner != self.user_id:
            raise ValidationFailure("Ownership is immutable after creation", field="user_id")

        record = self.to_record()
        for key, value in patch.items():
            if key == "id":
                continue
            if key == "macros" and isinstance(value, Mapping):
                record["macros"] = {**record.get("macros", {}), **value}
            else:
                record[key] = value
        return type(self).from_record(record)

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> "_OwnedEntity":  # pragma: no cover
        raise NotImplementedError


@dataclass
class Ingredient(_OwnedEntity):
    """Base food item with per-unit macros and price."""

    kind: ClassVar[EntityKind] = EntityKind.INGREDIENT

    unit: str = ""
    macros: Macros = field(default_factory=Macros)
    price: float = 0.0
    quantity: Optional[float] = None

    def __post_init__(self) -> None:
        self._validate_identity()
        self.unit = _require_text(self.unit, "unit")
        if len(self.unit) > MAX_UNIT_LENGTH:
            raise ValidationFailure(
                f"unit must be at most {MAX_UNIT_LENGTH} characters", field="unit"
            )
        self.price = _non_negative(self.price, "price", 0.0)
        if self.quantity is not None:
            self.quantity = _non_negative(self.quantity, "quantity")

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> "Ingredient":
        return cls(
            id=str(data.get("id") or new_record_id()),
            user_id=data.get("user_id"),  # type: ignore[arg-type]
            name=data.get("name"),  # type: ignore[arg-type]
            unit=data.get("unit"),  # type: ignore[arg-type]
            macros=Macros.from_record(data.get("macros"), required=True),
            price=data.get("price") or 0.0,
            quantity=data.get("quantity"),
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "unit": self.unit,
            "quantity": self.quantity,
            "macros": self.macros.to_record(),
            "price": self.price,
        }


@dataclass
class Meal(_OwnedEntity):
    """Composite dish made from the owner's ingredients."""

    kind: ClassVar[EntityKind] = EntityKind.MEAL

    ingredients: List[MealIngredient] = field(default_factory=list)
    macros: Macros = field(default_factory=Macros)
    price: float = 0.0

    def __post_init__(self) -> None:
        self._validate_identity()
        self.price = _non_negative(self.price, "price", 0.0)

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> "Meal":
        return cls(
            id=str(data.get("id") or new_record_id()),
            user_id=data.get("user_id"),  # type: ignore[arg-type]
            name=data.get("name"),  # type: ignore[arg-type]
            ingredients=[MealIngredient.from_record(i) for i in data.get("ingredients") or []],
            macros=Macros.from_record(data.get("macros"), required=True),
            price=data.get("price") or 0.0,
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "ingredients": [i.to_record() for i in self.ingredients],
            "macros": self.macros.to_record(),
            "price": self.price,
        }


@dataclass
class MealPlan(_OwnedEntity):
    """Ordered, grouped list of ingredients and meals with stored totals."""

    kind: ClassVar[EntityKind] = EntityKind.MEAL_PLAN

    items: List[MealPlanItem] = field(default_factory=list)
    macros: Macros = field(default_factory=Macros)
    price: float = 0.0

    def __post_init__(self) -> None:
        self._validate_identity()
        self.price = _non_negative(self.price, "price", 0.0)

    @classmethod
    def from_record(cls, data: Mapping[str, Any]) -> "MealPlan":
        return cls(
            id=str(data.get("id") or new_record_id()),
            user_id=data.get("user_id"),  # type: ignore[arg-type]
            name=data.get("name"),  # type: ignore[arg-type]
            items=[MealPlanItem.from_record(i) for i in data.get("items") or []],
            macros=Macros.from_record(data.get("macros")),
            price=data.get("price") or 0.0,
        )

    def to_record(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "items": [i.to_record() for i in self.items],
            "macros": self.macros.to_record(),
            "price": self.price,
        }


Entity = Union[Ingredient, Meal, MealPlan]

ENTITY_CLASSES: Dict[EntityKind, Type[_OwnedEntity]] = {
    EntityKind.INGREDIENT: Ingredient,
    EntityKind.MEAL: Meal,
    EntityKind.MEAL_PLAN: MealPlan,
}
