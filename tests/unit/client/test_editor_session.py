"""Unit tests for PlanEditorSession.

Tests focus on:
- Dirty tracking against the last persisted shape
- Explicit saves: create then update, no-op when clean
- In-flight guard (a save requested mid-save is queued)
- Failure handling: DIRTY state plus a Retry notification
- Live edit: autosave after settle
- Frame batching of structural edits
"""

import asyncio
from typing import Any, List, Mapping, Optional
from unittest.mock import AsyncMock

import pytest

from mealsync.client.editor_session import PlanEditorSession, SaveState
from mealsync.client.notifications import NotificationCenter, Severity
from mealsync.client.persistence import GraphQLPlanPersistence, ServicePlanPersistence
from mealsync.domain.catalog.entities import Ingredient, Meal, MealPlan
from mealsync.domain.catalog.kinds import EntityKind
from mealsync.domain.editor import INGREDIENT_STORE, PlanEditor


class RecordingPersistence:
    """Persistence double returning the saved plan, optionally blocking."""

    def __init__(self) -> None:
        self.calls: List[tuple] = []
        self.gate: Optional[asyncio.Event] = None
        self.fail = False

    async def save(self, plan_input: Mapping[str, Any], plan_id: Optional[str]) -> MealPlan:
        self.calls.append((dict(plan_input), plan_id))
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise RuntimeError("network down")
        return MealPlan.from_record({**plan_input, "id": plan_id or "plan-new"})


@pytest.fixture
def persistence() -> RecordingPersistence:
    return RecordingPersistence()


@pytest.fixture
def center() -> NotificationCenter:
    return NotificationCenter()


@pytest.fixture
def editor(rice: Ingredient, oil: Ingredient, salad: Meal) -> PlanEditor:
    return PlanEditor.open(None, ingredients=[rice, oil], meals=[salad], owner_id="user-1")


@pytest.fixture
def session(
    editor: PlanEditor, persistence: RecordingPersistence, center: NotificationCenter
) -> PlanEditorSession:
    return PlanEditorSession(editor, persistence, center, settle_delay=0.01, frame_interval=0.005)


def _lunch(editor: PlanEditor) -> str:
    return next(g for g in editor.group_order if editor.columns[g].title == "Lunch")


class TestDirtyTracking:
    """Test state transitions on edits."""

    def test_new_plan_starts_clean(self, session: PlanEditorSession) -> None:
        assert session.state is SaveState.CLEAN
        assert not session.is_dirty

    @pytest.mark.asyncio
    async def test_move_marks_dirty(self, session: PlanEditorSession, editor: PlanEditor) -> None:
        assert session.move("rice", INGREDIENT_STORE, _lunch(editor))

        assert session.state is SaveState.DIRTY
        assert session.is_dirty
        session.close()

    def test_rejected_move_stays_clean(self, session: PlanEditorSession) -> None:
        assert not session.move("rice", INGREDIENT_STORE, "meals-store")

        assert session.state is SaveState.CLEAN

    def test_persisted_plan_baseline(
        self, persistence: RecordingPersistence, rice: Ingredient, oil: Ingredient, salad: Meal
    ) -> None:
        """Test a reopened plan whose stored totals match is clean."""
        plan = MealPlan.from_record(
            {
                "id": "plan-1",
                "user_id": "user-1",
                "name": "Week 1",
                "items": [{"type": "ingredient", "item_id": "rice", "quantity": 1, "group": "Lunch"}],
                "macros": {"calories": 200, "protein": 4, "carbs": 45, "fat": 0},
                "price": 1.5,
            }
        )
        editor = PlanEditor.open(plan, ingredients=[rice, oil], meals=[salad])

        session = PlanEditorSession(editor, persistence, baseline=plan)

        assert session.state is SaveState.CLEAN

    @pytest.mark.asyncio
    async def test_settle_without_live_edit_does_not_save(
        self, session: PlanEditorSession, editor: PlanEditor, persistence: RecordingPersistence
    ) -> None:
        session.move("rice", INGREDIENT_STORE, _lunch(editor))

        await session.flush()

        assert persistence.calls == []
        assert session.state is SaveState.DIRTY

    @pytest.mark.asyncio
    async def test_edit_and_undo_is_clean(
        self, session: PlanEditorSession, editor: PlanEditor
    ) -> None:
        lunch = _lunch(editor)
        session.move("rice", INGREDIENT_STORE, lunch)
        session.move("rice", lunch, INGREDIENT_STORE, index=0)

        await session.flush()

        assert session.state is SaveState.CLEAN


class TestSave:
    """Test explicit saves."""

    @pytest.mark.asyncio
    async def test_clean_save_is_noop(
        self, session: PlanEditorSession, persistence: RecordingPersistence
    ) -> None:
        assert not await session.save()

        assert persistence.calls == []

    @pytest.mark.asyncio
    async def test_create_then_update(
        self, session: PlanEditorSession, editor: PlanEditor, persistence: RecordingPersistence
    ) -> None:
        session.rename_plan("Week 1")
        session.move("rice", INGREDIENT_STORE, _lunch(editor))

        assert await session.save()
        assert editor.plan_id == "plan-new"
        assert session.state is SaveState.CLEAN

        session.set_quantity("rice", 2)
        assert await session.save()

        first_input, first_id = persistence.calls[0]
        second_input, second_id = persistence.calls[1]
        assert first_id is None
        assert first_input["macros"]["calories"] == 200
        assert second_id == "plan-new"
        assert second_input["macros"]["calories"] == 400
        assert session.save_count == 2
        session.close()

    @pytest.mark.asyncio
    async def test_repeated_save_is_idempotent(
        self, session: PlanEditorSession, editor: PlanEditor, persistence: RecordingPersistence
    ) -> None:
        session.rename_plan("Week 1")
        session.move("rice", INGREDIENT_STORE, _lunch(editor))

        await session.save()
        await session.save()
        await session.save()

        assert len(persistence.calls) == 1
        session.close()

    @pytest.mark.asyncio
    async def test_failure_leaves_dirty_with_retry(
        self,
        session: PlanEditorSession,
        editor: PlanEditor,
        persistence: RecordingPersistence,
        center: NotificationCenter,
    ) -> None:
        session.rename_plan("Week 1")
        session.move("rice", INGREDIENT_STORE, _lunch(editor))
        persistence.fail = True

        assert not await session.save()

        assert session.state is SaveState.DIRTY
        notification = center.last()
        assert notification.severity is Severity.ERROR
        assert notification.message == "Failed to save meal plan"
        assert notification.action_label == "Retry"

        persistence.fail = False
        assert await notification.action()
        assert session.state is SaveState.CLEAN
        session.close()

    @pytest.mark.asyncio
    async def test_save_during_save_is_queued(
        self, session: PlanEditorSession, editor: PlanEditor, persistence: RecordingPersistence
    ) -> None:
        """Test an edit made while saving is saved right after."""
        session.rename_plan("Week 1")
        session.move("rice", INGREDIENT_STORE, _lunch(editor))
        persistence.gate = asyncio.Event()

        first = asyncio.create_task(session.save())
        await asyncio.sleep(0)
        assert session.state is SaveState.SAVING

        session.set_quantity("rice", 3)
        assert not await session.save()
        assert len(persistence.calls) == 1

        persistence.gate.set()
        assert await first

        assert len(persistence.calls) == 2
        assert persistence.calls[1][0]["macros"]["calories"] == 600
        assert persistence.calls[1][1] == "plan-new"
        assert session.state is SaveState.CLEAN
        session.close()

    @pytest.mark.asyncio
    async def test_cancelled_save_can_be_retried(
        self, session: PlanEditorSession, editor: PlanEditor, persistence: RecordingPersistence
    ) -> None:
        """Test a save cancelled mid-flight leaves the session DIRTY and saveable."""
        session.rename_plan("Week 1")
        session.move("rice", INGREDIENT_STORE, _lunch(editor))
        persistence.gate = asyncio.Event()

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(session.save(), timeout=0.05)

        assert session.state is SaveState.DIRTY

        persistence.gate = None
        assert await session.save()
        assert len(persistence.calls) == 2
        assert session.state is SaveState.CLEAN
        session.close()

    @pytest.mark.asyncio
    async def test_close_drops_queued_save(
        self, session: PlanEditorSession, editor: PlanEditor, persistence: RecordingPersistence
    ) -> None:
        session.rename_plan("Week 1")
        session.move("rice", INGREDIENT_STORE, _lunch(editor))
        persistence.gate = asyncio.Event()

        first = asyncio.create_task(session.save())
        await asyncio.sleep(0)
        session.set_quantity("rice", 3)
        assert not await session.save()

        session.close()
        persistence.gate.set()
        assert await first

        assert len(persistence.calls) == 1
        assert not await session.save()
        assert len(persistence.calls) == 1

    @pytest.mark.asyncio
    async def test_disabling_live_edit_drops_queued_save(
        self, session: PlanEditorSession, editor: PlanEditor, persistence: RecordingPersistence
    ) -> None:
        session.set_live_edit(True)
        session.rename_plan("Week 1")
        session.move("rice", INGREDIENT_STORE, _lunch(editor))
        persistence.gate = asyncio.Event()

        first = asyncio.create_task(session.save())
        await asyncio.sleep(0)
        session.set_quantity("rice", 3)
        assert not await session.save()

        session.set_live_edit(False)
        persistence.gate.set()
        assert await first

        assert len(persistence.calls) == 1
        assert session.state is SaveState.DIRTY
        session.close()


class TestLiveEdit:
    """Test autosave after settle."""

    @pytest.mark.asyncio
    async def test_autosave_after_settle(
        self, session: PlanEditorSession, editor: PlanEditor, persistence: RecordingPersistence
    ) -> None:
        session.set_live_edit(True)
        session.rename_plan("Week 1")
        session.move("rice", INGREDIENT_STORE, _lunch(editor))
        session.set_quantity("rice", 2)

        await session.flush()

        assert len(persistence.calls) == 1
        assert persistence.calls[0][0]["macros"]["calories"] == 400
        assert session.state is SaveState.CLEAN

    @pytest.mark.asyncio
    async def test_autosave_on_timer(
        self, session: PlanEditorSession, editor: PlanEditor, persistence: RecordingPersistence
    ) -> None:
        session.set_live_edit(True)
        session.rename_plan("Week 1")
        session.move("rice", INGREDIENT_STORE, _lunch(editor))

        await asyncio.sleep(0.1)

        assert len(persistence.calls) == 1

    @pytest.mark.asyncio
    async def test_disable_cancels_pending_save(
        self, session: PlanEditorSession, editor: PlanEditor, persistence: RecordingPersistence
    ) -> None:
        session.set_live_edit(True)
        session.move("rice", INGREDIENT_STORE, _lunch(editor))

        session.set_live_edit(False)
        await asyncio.sleep(0.05)

        assert persistence.calls == []
        assert session.state is SaveState.DIRTY

    @pytest.mark.asyncio
    async def test_close_cancels_timers(
        self, session: PlanEditorSession, editor: PlanEditor, persistence: RecordingPersistence
    ) -> None:
        session.set_live_edit(True)
        session.move("rice", INGREDIENT_STORE, _lunch(editor))

        session.close()
        await asyncio.sleep(0.05)

        assert persistence.calls == []


class TestFrameBatching:
    """Test structural edits coalesce into one refresh per frame."""

    @pytest.mark.asyncio
    async def test_burst_refreshes_once(
        self, editor: PlanEditor, persistence: RecordingPersistence
    ) -> None:
        changes: List[float] = []
        session = PlanEditorSession(
            editor,
            persistence,
            settle_delay=10,
            frame_interval=0.005,
            on_change=lambda e: changes.append(e.totals.macros.calories),
        )
        lunch = _lunch(editor)

        session.move("rice", INGREDIENT_STORE, lunch)
        session.move("oil", INGREDIENT_STORE, lunch)
        session.move("salad", "meals-store", lunch)

        await asyncio.sleep(0.05)

        assert changes == [470]
        session.close()

    @pytest.mark.asyncio
    async def test_apply_catalog(
        self, session: PlanEditorSession, rice: Ingredient, salad: Meal
    ) -> None:
        assert session.apply_catalog([rice], [salad])
        assert not session.apply_catalog([rice], [salad])
        session.close()


class TestServicePersistence:
    """Test the persistence adapters."""

    @pytest.mark.asyncio
    async def test_create_and_update(self, services, owner_caller, editor: PlanEditor) -> None:
        plans = services[EntityKind.MEAL_PLAN]
        session = PlanEditorSession(editor, ServicePlanPersistence(plans, owner_caller))
        session.rename_plan("Week 1")
        session.move("rice", INGREDIENT_STORE, _lunch(editor))

        assert await session.save()
        session.set_quantity("rice", 2)
        assert await session.save()

        stored = await plans.find(owner_caller, "user-1")
        assert len(stored) == 1
        assert stored[0].id == editor.plan_id
        assert stored[0].macros.calories == 400
        assert stored[0].items[0].group == "Lunch"
        session.close()

    @pytest.mark.asyncio
    async def test_graphql_persistence_routes(self) -> None:
        api = AsyncMock()
        persistence = GraphQLPlanPersistence(api)

        await persistence.save({"user_id": "user-1"}, None)
        await persistence.save({"user_id": "user-1"}, "plan-1")

        api.create_meal_plan.assert_awaited_once_with({"user_id": "user-1"})
        api.update_meal_plan.assert_awaited_once_with("plan-1", {"user_id": "user-1"})
