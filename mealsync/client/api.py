"""Typed wrapper over the mealsync GraphQL API.

Translates between GraphQL (camelCase) payloads and domain entities, so
client components work with the same Ingredient, Meal and MealPlan types
the server uses.
"""

from typing import Any, Dict, List, Mapping, Optional

from mealsync.client.transport import GraphQLHttpClient, TransportError
from mealsync.domain.catalog.entities import Ingredient, Meal, MealPlan

MACROS_FIELDS = "calories protein carbs fat"

INGREDIENTS_QUERY = f"""
query Ingredients($userId: String!) {{
  ingredients(userId: $userId) {{
    id userId name unit quantity price
    macros {{ {MACROS_FIELDS} }}
  }}
}}
"""

MEALS_QUERY = f"""
query Meals($userId: String!) {{
  meals(userId: $userId) {{
    id userId name price
    ingredients {{ ingredientId quantity }}
    macros {{ {MACROS_FIELDS} }}
  }}
}}
"""

MEAL_PLAN_FIELDS = f"""
    id userId name price
    items {{ type itemId quantity group }}
    macros {{ {MACROS_FIELDS} }}
"""

MEAL_PLANS_QUERY = f"""
query MealPlans($userId: String!) {{
  mealPlans(userId: $userId) {{ {MEAL_PLAN_FIELDS} }}
}}
"""

CREATE_MEAL_PLAN = f"""
mutation CreateMealPlan($input: MealPlanInput!) {{
  mealPlans {{
    create(input: $input) {{
      __typename
      ... on MealPlanPayload {{ mealPlan {{ {MEAL_PLAN_FIELDS} }} }}
      ... on MutationError {{ message code field }}
    }}
  }}
}}
"""

UPDATE_MEAL_PLAN = f"""
mutation UpdateMealPlan($id: ID!, $input: MealPlanPatch!, $userId: String) {{
  mealPlans {{
    updateById(id: $id, input: $input, userId: $userId) {{
      __typename
      ... on MealPlanPayload {{ mealPlan {{ {MEAL_PLAN_FIELDS} }} }}
      ... on MutationError {{ message code field }}
    }}
  }}
}}
"""


class MutationRejected(TransportError):
    """The server answered a mutation with a MutationError."""

    def __init__(self, message: str, code: str, field: Optional[str] = None) -> None:
        super().__init__(message)
        self.code = code
        self.field = field


def _macros(data: Optional[Mapping[str, Any]]) -> Optional[Dict[str, Any]]:
    return dict(data) if data is not None else None


def ingredient_from_graphql(data: Mapping[str, Any]) -> Ingredient:
    return Ingredient.from_record(
        {
            "id": data["id"],
            "user_id": data["userId"],
            "name": data["name"],
            "unit": data["unit"],
            "quantity": data.get("quantity"),
            "macros": _macros(data.get("macros")),
            "price": data.get("price"),
        }
    )


def meal_from_graphql(data: Mapping[str, Any]) -> Meal:
    return Meal.from_record(
        {
            "id": data["id"],
            "user_id": data["userId"],
            "name": data["name"],
            "ingredients": [
                {"ingredient_id": i["ingredientId"], "quantity": i["quantity"]}
                for i in data.get("ingredients") or []
            ],
            "macros": _macros(data.get("macros")),
            "price": data.get("price"),
        }
    )


def meal_plan_from_graphql(data: Mapping[str, Any]) -> MealPlan:
    return MealPlan.from_record(
        {
            "id": data["id"],
            "user_id": data["userId"],
            "name": data["name"],
            "items": [
                {
                    "type": i["type"],
                    "item_id": i["itemId"],
                    "quantity": i["quantity"],
                    "group": i.get("group"),
                }
                for i in data.get("items") or []
            ],
            "macros": _macros(data.get("macros")),
            "price": data.get("price"),
        }
    )


def meal_plan_variables(plan_input: Mapping[str, Any]) -> Dict[str, Any]:
    """Editor plan record (snake_case) to a GraphQL MealPlanInput."""
    macros = plan_input.get("macros")
    return {
        "userId": plan_input["user_id"],
        "name": plan_input["name"],
        "items": [
            {
                "type": i["type"],
                "itemId": i["item_id"],
                "quantity": i["quantity"],
                "group": i["group"],
            }
            for i in plan_input.get("items", [])
        ],
        "macros": dict(macros) if macros else None,
        "price": plan_input.get("price", 0.0),
    }


def _unwrap(result: Mapping[str, Any]) -> Mapping[str, Any]:
    if result.get("__typename") == "MutationError":
        raise MutationRejected(result["message"], result["code"], result.get("field"))
    return result


class MealSyncApi:
    """Catalog reads and meal plan writes over GraphQL.

    Example:
        >>> async with GraphQLHttpClient(session) as client:
        ...     api = MealSyncApi(client)
        ...     plans = await api.fetch_meal_plans("user-1")
    """

    def __init__(self, client: GraphQLHttpClient) -> None:
        self.client = client

    async def fetch_ingredients(self, user_id: str) -> List[Ingredient]:
        data = await self.client.query(INGREDIENTS_QUERY, {"userId": user_id})
        return [ingredient_from_graphql(i) for i in data["ingredients"]]

    async def fetch_meals(self, user_id: str) -> List[Meal]:
        data = await self.client.query(MEALS_QUERY, {"userId": user_id})
        return [meal_from_graphql(m) for m in data["meals"]]

    async def fetch_meal_plans(self, user_id: str) -> List[MealPlan]:
        data = await self.client.query(MEAL_PLANS_QUERY, {"userId": user_id})
        return [meal_plan_from_graphql(p) for p in data["mealPlans"]]

    async def create_meal_plan(self, plan_input: Mapping[str, Any]) -> MealPlan:
        data = await self.client.mutate(
            CREATE_MEAL_PLAN, {"input": meal_plan_variables(plan_input)}
        )
        result = _unwrap(data["mealPlans"]["create"])
        return meal_plan_from_graphql(result["mealPlan"])

    async def update_meal_plan(self, plan_id: str, plan_input: Mapping[str, Any]) -> MealPlan:
        variables = {
            "id": plan_id,
            "input": meal_plan_variables(plan_input),
            "userId": plan_input["user_id"],
        }
        data = await self.client.mutate(UPDATE_MEAL_PLAN, variables)
        result = _unwrap(data["mealPlans"]["updateById"])
        return meal_plan_from_graphql(result["mealPlan"])
