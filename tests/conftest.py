"""Shared test fixtures.

Catalog fixtures use the reference numbers from the product docs:
Rice {200, 4, 45, 0} and Oil {120, 0, 0, 14} per unit.
"""

from typing import Any, Callable, Dict

import pytest

from mealsync.application.entity_service import EntityService, build_entity_services
from mealsync.application.ownership import CallerContext
from mealsync.domain.catalog.entities import Ingredient, Meal, MealPlan
from mealsync.domain.catalog.kinds import EntityKind
from mealsync.domain.shared.identity import Identity
from mealsync.infrastructure.events.in_memory_notifier import InMemoryChangeNotifier
from mealsync.infrastructure.persistence.in_memory.record_store import InMemoryRecordStore

OWNER = "user-1"
OTHER = "user-2"


def _ingredient_record(name: str = "Rice", user_id: str = OWNER, **overrides: Any) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "user_id": user_id,
        "name": name,
        "unit": "g",
        "macros": {"calories": 200, "protein": 4, "carbs": 45, "fat": 0},
        "price": 1.5,
    }
    record.update(overrides)
    return record


@pytest.fixture
def ingredient_record() -> Callable[..., Dict[str, Any]]:
    """Factory for valid ingredient records (Rice numbers unless overridden)."""
    return _ingredient_record


@pytest.fixture
def rice() -> Ingredient:
    return Ingredient.from_record(_ingredient_record(id="rice"))


@pytest.fixture
def oil() -> Ingredient:
    return Ingredient.from_record(
        _ingredient_record(
            name="Oil",
            id="oil",
            unit="ml",
            macros={"calories": 120, "protein": 0, "carbs": 0, "fat": 14},
            price=0.4,
        )
    )


@pytest.fixture
def salad() -> Meal:
    return Meal.from_record(
        {
            "id": "salad",
            "user_id": OWNER,
            "name": "Salad",
            "ingredients": [{"ingredient_id": "oil", "quantity": 1}],
            "macros": {"calories": 150, "protein": 3, "carbs": 10, "fat": 11},
            "price": 4.0,
        }
    )


@pytest.fixture
def empty_plan() -> MealPlan:
    return MealPlan.from_record({"id": "plan-1", "user_id": OWNER, "name": "Week 1"})


@pytest.fixture
def notifier() -> InMemoryChangeNotifier:
    return InMemoryChangeNotifier()


@pytest.fixture
def stores() -> Dict[EntityKind, InMemoryRecordStore[Any]]:
    return {kind: InMemoryRecordStore(kind) for kind in EntityKind}


@pytest.fixture
def services(
    stores: Dict[EntityKind, InMemoryRecordStore[Any]], notifier: InMemoryChangeNotifier
) -> Dict[EntityKind, EntityService[Any]]:
    return build_entity_services(stores, notifier, allow_dev_override=True)


@pytest.fixture
def owner_caller() -> CallerContext:
    return CallerContext(identity=Identity(OWNER), client_id="tab-a")


@pytest.fixture
def other_caller() -> CallerContext:
    return CallerContext(identity=Identity(OTHER), client_id="tab-z")


@pytest.fixture
def dev_caller() -> CallerContext:
    return CallerContext(identity=Identity.dev(), client_id="tab-dev")
