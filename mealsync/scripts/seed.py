#!/usr/bin/env python3
"""Seed a user's catalog with demo ingredients, meals and plans.

Usage:
    python -m mealsync.scripts.seed --user user-1 [--clear]

Environment:
    REPOSITORY_BACKEND / MONGODB_URI: Target store (see ``load_settings``)

The server runs the same seed at startup when ``SEED_USER_ID`` is set in
development. Seeding is skipped for a user who already has ingredients.
"""

import argparse
import asyncio
import logging
from typing import Any, Dict, List, Mapping, Sequence, Tuple

from mealsync.application.entity_service import EntityService, build_entity_services
from mealsync.application.ownership import CallerContext
from mealsync.domain.catalog.entities import Ingredient, Macros, Meal, MealPlan
from mealsync.domain.catalog.kinds import EntityKind
from mealsync.domain.editor.plan_editor import PlanEditor
from mealsync.domain.shared.identity import Identity
from mealsync.infrastructure.config import load_settings
from mealsync.infrastructure.events.in_memory_notifier import InMemoryChangeNotifier
from mealsync.infrastructure.persistence.factory import create_record_stores

logger = logging.getLogger(__name__)

SEED_CLIENT_ID = "seed"

INGREDIENTS: List[Dict[str, Any]] = [
    {
        "name": "Chicken Breast",
        "quantity": 6,
        "unit": "oz",
        "macros": {"calories": 120, "protein": 26, "carbs": 0, "fat": 3},
        "price": 1.99,
    },
    {
        "name": "Rice",
        "quantity": 1,
        "unit": "cup",
        "macros": {"calories": 200, "protein": 4, "carbs": 45, "fat": 0},
        "price": 0.5,
    },
    {
        "name": "Broccoli",
        "quantity": 1,
        "unit": "cup",
        "macros": {"calories": 55, "protein": 3, "carbs": 10, "fat": 0},
        "price": 1.5,
    },
    {
        "name": "Olive Oil",
        "quantity": 1,
        "unit": "tbsp",
        "macros": {"calories": 120, "protein": 0, "carbs": 0, "fat": 14},
        "price": 0.3,
    },
    {
        "name": "Eggs",
        "quantity": 1,
        "unit": "unit",
        "macros": {"calories": 70, "protein": 6, "carbs": 0, "fat": 5},
        "price": 0.25,
    },
    {
        "name": "Spinach",
        "quantity": 1,
        "unit": "cup",
        "macros": {"calories": 7, "protein": 1, "carbs": 1, "fat": 0},
        "price": 1.0,
    },
    {
        "name": "Salmon",
        "quantity": 1,
        "unit": "fillet",
        "macros": {"calories": 200, "protein": 22, "carbs": 0, "fat": 12},
        "price": 4.99,
    },
]

# Meal name -> (ingredient name, quantity) pairs
MEALS: Dict[str, List[Tuple[str, float]]] = {
    "Chicken Rice Bowl": [
        ("Chicken Breast", 0.5),
        ("Rice", 1),
        ("Broccoli", 1),
        ("Olive Oil", 0.5),
    ],
    "Spinach Omelette": [("Eggs", 2), ("Spinach", 1), ("Olive Oil", 0.5)],
    "Salmon Dinner": [("Salmon", 1), ("Rice", 0.5), ("Broccoli", 1), ("Olive Oil", 0.5)],
}

# Plan name -> (item type, item name, quantity, group)
PLANS: Dict[str, List[Tuple[str, str, float, str]]] = {
    "Weekly Meal Plan": [
        ("meal", "Chicken Rice Bowl", 1, "Meals"),
        ("meal", "Spinach Omelette", 1, "Meals"),
        ("meal", "Salmon Dinner", 1, "Meals"),
        ("ingredient", "Chicken Breast", 2, "Proteins"),
        ("ingredient", "Rice", 3, "Carbs"),
        ("ingredient", "Broccoli", 2, "Vegetables"),
    ],
    "Weight Loss Plan": [
        ("meal", "Spinach Omelette", 1, "Breakfast"),
        ("ingredient", "Salmon", 1, "Dinner"),
        ("ingredient", "Spinach", 2, "Vegetables"),
    ],
}


def meal_record(
    user_id: str, name: str, parts: Sequence[Tuple[str, float]], ingredients: Mapping[str, Ingredient]
) -> Dict[str, Any]:
    """Build a meal whose macros and price are summed from its ingredients."""
    macros = Macros()
    price = 0.0
    for ingredient_name, quantity in parts:
        ingredient = ingredients[ingredient_name]
        macros = macros + ingredient.macros.scale(quantity)
        price += ingredient.price * quantity
    return {
        "user_id": user_id,
        "name": name,
        "ingredients": [
            {"ingredient_id": ingredients[n].id, "quantity": q} for n, q in parts
        ],
        "macros": macros.to_record(),
        "price": round(price, 2),
    }


def plan_record(
    user_id: str,
    name: str,
    entries: Sequence[Tuple[str, str, float, str]],
    ingredients: Mapping[str, Ingredient],
    meals: Mapping[str, Meal],
) -> Dict[str, Any]:
    """Build a plan with totals computed the way the editor computes them."""
    items = []
    for item_type, item_name, quantity, group in entries:
        source = meals if item_type == "meal" else ingredients
        items.append(
            {"type": item_type, "item_id": source[item_name].id, "quantity": quantity, "group": group}
        )
    plan = MealPlan.from_record({"user_id": user_id, "name": name, "items": items})
    editor = PlanEditor.open(plan, ingredients=list(ingredients.values()), meals=list(meals.values()))
    return editor.to_plan_input()


async def seed_user(
    services: Mapping[EntityKind, EntityService[Any]], user_id: str, clear: bool = False
) -> bool:
    """Create the demo catalog for ``user_id``.

    Args:
        services: Entity services by kind
        user_id: Owner of the seeded records
        clear: Remove the user's existing records first

    Returns:
        False when the user already had ingredients and nothing was seeded
    """
    caller = CallerContext(identity=Identity(user_id), client_id=SEED_CLIENT_ID)
    ingredient_service = services[EntityKind.INGREDIENT]

    if clear:
        for kind in (EntityKind.MEAL_PLAN, EntityKind.MEAL, EntityKind.INGREDIENT):
            await services[kind].remove_many(caller, user_id)
    elif await ingredient_service.find(caller, user_id):
        logger.info("seed.skipped", extra={"user_id": user_id, "reason": "existing data"})
        return False

    created = await ingredient_service.create_many(
        caller, [{**record, "user_id": user_id} for record in INGREDIENTS]
    )
    ingredients = {ingredient.name: ingredient for ingredient in created}

    meals: Dict[str, Meal] = {}
    for name, parts in MEALS.items():
        meals[name] = await services[EntityKind.MEAL].create(
            caller, meal_record(user_id, name, parts, ingredients)
        )

    for name, entries in PLANS.items():
        await services[EntityKind.MEAL_PLAN].create(
            caller, plan_record(user_id, name, entries, ingredients, meals)
        )

    logger.info(
        "seed.done",
        extra={
            "user_id": user_id,
            "ingredients": len(ingredients),
            "meals": len(meals),
            "plans": len(PLANS),
        },
    )
    return True


async def main(user_id: str, clear: bool) -> None:
    settings = load_settings()
    stores = create_record_stores(settings.repository_backend)
    services = build_entity_services(stores, InMemoryChangeNotifier())
    try:
        await seed_user(services, user_id, clear=clear)
    finally:
        for store in stores.values():
            close = getattr(store, "close", None)
            if close is not None:
                await close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed demo data for one user")
    parser.add_argument("--user", dest="user_id", required=True)
    parser.add_argument("--clear", action="store_true", help="Remove the user's records first")
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    asyncio.run(main(args.user_id, args.clear))
