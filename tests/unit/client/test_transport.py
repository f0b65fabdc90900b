"""Unit tests for GraphQLHttpClient and MealSyncApi over httpx.MockTransport."""

import json
from typing import Any, Callable, Dict, List

import httpx
import pytest

from mealsync.client.api import MealSyncApi, MutationRejected, meal_plan_variables
from mealsync.client.session import ClientSession
from mealsync.client.transport import (
    GraphQLHttpClient,
    TransientTransportError,
    TransportError,
)

ENDPOINT = "http://test/graphql"


def _client(handler: Callable[[httpx.Request], httpx.Response], **kwargs: Any) -> GraphQLHttpClient:
    session = ClientSession(client_id="tab-a", owner_id="user-1", token="jwt")
    return GraphQLHttpClient(
        session,
        endpoint=ENDPOINT,
        backoff=0,
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def _plan_json(**overrides: Any) -> Dict[str, Any]:
    plan: Dict[str, Any] = {
        "id": "plan-1",
        "userId": "user-1",
        "name": "Week 1",
        "price": 1.5,
        "items": [{"type": "ingredient", "itemId": "rice", "quantity": 1, "group": "Lunch"}],
        "macros": {"calories": 200, "protein": 4, "carbs": 45, "fat": 0},
    }
    plan.update(overrides)
    return plan


class TestGraphQLHttpClient:
    """Test request shape, retries and error mapping."""

    @pytest.mark.asyncio
    async def test_headers_and_payload(self) -> None:
        seen: List[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json={"data": {"health": "ok"}})

        async with _client(handler) as client:
            data = await client.query("{ health }", {"x": 1})

        assert data == {"health": "ok"}
        request = seen[0]
        assert request.headers["x-client-id"] == "tab-a"
        assert request.headers["Authorization"] == "Bearer jwt"
        assert json.loads(request.content) == {"query": "{ health }", "variables": {"x": 1}}

    @pytest.mark.asyncio
    async def test_query_retries_server_errors(self) -> None:
        """Test a read succeeds after transient 503s."""
        responses = [httpx.Response(503), httpx.Response(503), httpx.Response(200, json={"data": {"a": 1}})]
        attempts: List[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(1)
            return responses[len(attempts) - 1]

        async with _client(handler) as client:
            assert await client.query("{ a }") == {"a": 1}

        assert len(attempts) == 3

    @pytest.mark.asyncio
    async def test_query_gives_up(self) -> None:
        attempts: List[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(1)
            return httpx.Response(500)

        async with _client(handler, max_attempts=2) as client:
            with pytest.raises(TransientTransportError) as exc_info:
                await client.query("{ a }")

        assert exc_info.value.status_code == 500
        assert len(attempts) == 2

    @pytest.mark.asyncio
    async def test_mutation_not_retried(self) -> None:
        attempts: List[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(1)
            return httpx.Response(502)

        async with _client(handler) as client:
            with pytest.raises(TransientTransportError):
                await client.mutate("mutation { a }")

        assert len(attempts) == 1

    @pytest.mark.asyncio
    async def test_network_error_is_transient(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        async with _client(handler, max_attempts=1) as client:
            with pytest.raises(TransientTransportError, match="Network error"):
                await client.query("{ a }")

    @pytest.mark.asyncio
    async def test_client_error_not_retried(self) -> None:
        attempts: List[int] = []

        def handler(request: httpx.Request) -> httpx.Response:
            attempts.append(1)
            return httpx.Response(401, json={"error": "unauthorized"})

        async with _client(handler) as client:
            with pytest.raises(TransportError) as exc_info:
                await client.query("{ a }")

        assert exc_info.value.status_code == 401
        assert not isinstance(exc_info.value, TransientTransportError)
        assert len(attempts) == 1

    @pytest.mark.asyncio
    async def test_graphql_errors(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                json={"data": None, "errors": [{"message": "Not authenticated"}]},
            )

        async with _client(handler) as client:
            with pytest.raises(TransportError, match="Not authenticated") as exc_info:
                await client.query("{ a }")

        assert exc_info.value.errors == [{"message": "Not authenticated"}]

    @pytest.mark.asyncio
    async def test_requires_context_manager(self) -> None:
        client = _client(lambda request: httpx.Response(200, json={"data": {}}))

        with pytest.raises(RuntimeError):
            await client.query("{ a }")


class TestMealSyncApi:
    """Test GraphQL <-> domain translation."""

    @pytest.mark.asyncio
    async def test_fetch_meal_plans(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            assert json.loads(request.content)["variables"] == {"userId": "user-1"}
            return httpx.Response(200, json={"data": {"mealPlans": [_plan_json()]}})

        async with _client(handler) as client:
            plans = await MealSyncApi(client).fetch_meal_plans("user-1")

        assert len(plans) == 1
        assert plans[0].items[0].item_id == "rice"
        assert plans[0].items[0].group == "Lunch"
        assert plans[0].macros.calories == 200

    @pytest.mark.asyncio
    async def test_fetch_ingredients(self) -> None:
        ingredient = {
            "id": "rice",
            "userId": "user-1",
            "name": "Rice",
            "unit": "g",
            "quantity": None,
            "price": 1.5,
            "macros": {"calories": 200, "protein": 4, "carbs": 45, "fat": 0},
        }

        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"data": {"ingredients": [ingredient]}})

        async with _client(handler) as client:
            ingredients = await MealSyncApi(client).fetch_ingredients("user-1")

        assert ingredients[0].name == "Rice"
        assert ingredients[0].user_id == "user-1"

    @pytest.mark.asyncio
    async def test_update_meal_plan(self) -> None:
        sent: List[Dict[str, Any]] = []

        def handler(request: httpx.Request) -> httpx.Response:
            sent.append(json.loads(request.content)["variables"])
            result = {"__typename": "MealPlanPayload", "mealPlan": _plan_json(name="Week 2")}
            return httpx.Response(200, json={"data": {"mealPlans": {"updateById": result}}})

        plan_input = {
            "user_id": "user-1",
            "name": "Week 2",
            "items": [{"type": "ingredient", "item_id": "rice", "quantity": 1.0, "group": "Lunch"}],
            "macros": {"calories": 200, "protein": 4, "carbs": 45, "fat": 0},
            "price": 1.5,
        }

        async with _client(handler) as client:
            plan = await MealSyncApi(client).update_meal_plan("plan-1", plan_input)

        assert plan.name == "Week 2"
        assert sent[0]["id"] == "plan-1"
        assert sent[0]["userId"] == "user-1"
        assert sent[0]["input"]["items"][0]["itemId"] == "rice"

    @pytest.mark.asyncio
    async def test_create_rejected(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            result = {
                "__typename": "MutationError",
                "message": "Unauthorized access",
                "code": "UNAUTHORIZED",
                "field": None,
            }
            return httpx.Response(200, json={"data": {"mealPlans": {"create": result}}})

        async with _client(handler) as client:
            with pytest.raises(MutationRejected) as exc_info:
                await MealSyncApi(client).create_meal_plan(
                    {"user_id": "user-2", "name": "Theirs", "items": []}
                )

        assert exc_info.value.code == "UNAUTHORIZED"

    def test_meal_plan_variables(self) -> None:
        variables = meal_plan_variables({"user_id": "user-1", "name": "Week 1"})

        assert variables == {
            "userId": "user-1",
            "name": "Week 1",
            "items": [],
            "macros": None,
            "price": 0.0,
        }
