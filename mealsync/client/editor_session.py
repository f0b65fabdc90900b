"""Interactive plan editing session: timing and autosave around PlanEditor.

The PlanEditor holds the board; this session decides *when* things happen:

- structural edits (moves, group changes) request a totals refresh on the
  next frame, so a burst of edits costs one recompute
- quantity edits recompute once the input settles
- saving is explicit (``save``) or, with live edit on, runs after each
  settle; a dirty-check against the last persisted shape skips no-op saves

Autosave states::

    CLEAN --edit--> DIRTY --save--> SAVING --ok--> CLEAN (or DIRTY if edited meanwhile)
                                           --error--> DIRTY (+ retry notification)
"""

import asyncio
from enum import Enum
from typing import Any, Callable, Optional, Sequence

import structlog

from mealsync.client.notifications import NotificationCenter
from mealsync.client.persistence import IPlanPersistence
from mealsync.client.timers import Debouncer, FrameBatcher
from mealsync.domain.catalog.entities import Ingredient, Meal, MealPlan
from mealsync.domain.editor.plan_editor import PlanEditor, PlanSnapshot

logger = structlog.get_logger(__name__)

SAVE_FAILED_MESSAGE = "Failed to save meal plan"
SAVED_MESSAGE = "Meal plan saved"


class SaveState(str, Enum):
    CLEAN = "clean"
    DIRTY = "dirty"
    SAVING = "saving"


class PlanEditorSession:
    """Debounced, frame-batched, autosaving wrapper of a PlanEditor.

    Args:
        editor: Board opened with ``PlanEditor.open``
        persistence: Creates or updates the plan
        notifications: Receives save errors (with a Retry action)
        baseline: Last persisted plan; None for a plan not yet saved
        settle_delay: Seconds of inactivity before a settle
        frame_interval: Seconds per frame for batched recomputes
        on_change: Called with the editor whenever totals were refreshed

    Example:
        >>> session = PlanEditorSession(editor, persistence, center, baseline=plan)
        >>> session.set_live_edit(True)
        >>> session.set_quantity(rice_id, 2)   # saved ~settle_delay later
    """

    def __init__(
        self,
        editor: PlanEditor,
        persistence: IPlanPersistence,
        notifications: Optional[NotificationCenter] = None,
        baseline: Optional[MealPlan] = None,
        settle_delay: float = 0.3,
        frame_interval: float = 1 / 60,
        on_change: Optional[Callable[[PlanEditor], Any]] = None,
    ) -> None:
        self.editor = editor
        self.persistence = persistence
        self.notifications = notifications or NotificationCenter()
        self.on_change = on_change
        self.live_edit = False
        self.state = SaveState.CLEAN
        self.save_count = 0

        self._persisted = (
            PlanSnapshot.of_plan(baseline)
            if baseline is not None
            else PlanSnapshot.of_plan(None, name=editor.name)
        )
        self._in_flight = False
        self._save_queued = False
        self._closed = False
        self._settle = Debouncer(settle_delay, self._on_settle)
        self._frame = FrameBatcher(self._on_frame, frame_interval)

        editor.recompute()
        self._refresh_state()

    # ------------------------------------------------------------------
    # Edits
    # ------------------------------------------------------------------

    def move(self, item_id: str, source: str, target: str, index: Optional[int] = None) -> bool:
        return self._structural(self.editor.move(item_id, source, target, index))

    def move_group(self, group_id: str, index: int) -> bool:
        return self._structural(self.editor.move_group(group_id, index))

    def add_group(self, title: Optional[str] = None) -> str:
        group_id = self.editor.add_group(title) if title is not None else self.editor.add_group()
        self._structural(True)
        return group_id

    def remove_group(self, group_id: str) -> bool:
        return self._structural(self.editor.remove_group(group_id))

    def rename_group(self, group_id: str, title: str) -> bool:
        return self._structural(self.editor.rename_group(group_id, title))

    def rename_plan(self, name: str) -> None:
        self.editor.rename_plan(name)
        self._structural(True)

    def set_quantity(self, item_id: str, quantity: Any) -> float:
        """Store the normalized quantity; totals follow once input settles."""
        value = self.editor.set_quantity(item_id, quantity)
        self._mark_dirty()
        self._settle.trigger()
        return value

    def apply_catalog(self, ingredients: Sequence[Ingredient], meals: Sequence[Meal]) -> bool:
        """Merge a re-fetched catalog (e.g. after a remote change)."""
        changed = self.editor.sync_catalog(ingredients, meals)
        if changed:
            self._structural(True)
        return changed

    def _structural(self, changed: bool) -> bool:
        if changed:
            self._mark_dirty()
            self._frame.request()
            self._settle.trigger()
        return changed

    def _mark_dirty(self) -> None:
        if self.state is SaveState.CLEAN:
            self.state = SaveState.DIRTY

    def _refresh_state(self) -> None:
        if self.state is SaveState.SAVING:
            return
        dirty = self.editor.snapshot() != self._persisted
        self.state = SaveState.DIRTY if dirty else SaveState.CLEAN

    # ------------------------------------------------------------------
    # Timers
    # ------------------------------------------------------------------

    def _on_frame(self) -> None:
        self.editor.recompute()
        self._changed()

    async def _on_settle(self) -> None:
        self._frame.cancel()
        self.editor.recompute()
        self._changed()
        if self.live_edit:
            await self.save()
        else:
            self._refresh_state()

    def _changed(self) -> None:
        if self.on_change is not None:
            self.on_change(self.editor)

    async def flush(self) -> None:
        """Run a pending settle (and its autosave) immediately."""
        if self._frame.pending:
            self._frame.cancel()
            self._on_frame()
        await self._settle.flush()
        await self._settle.drain()

    def set_live_edit(self, enabled: bool) -> None:
        """Toggle save-after-every-settle. Disabling cancels pending timers and queued saves."""
        self.live_edit = enabled
        if not enabled:
            self._settle.cancel()
            self._frame.cancel()
            self._save_queued = False
            self.editor.recompute()
            self._refresh_state()
        logger.debug("editor.live_edit", enabled=enabled)

    def close(self) -> None:
        """Cancel pending timers and queued saves (editor unmounted).

        A save already in flight completes, but nothing runs after it.
        """
        self._closed = True
        self._save_queued = False
        self._settle.cancel()
        self._frame.cancel()

    # ------------------------------------------------------------------
    # Saving
    # ------------------------------------------------------------------

    @property
    def is_dirty(self) -> bool:
        return self.editor.snapshot() != self._persisted

    async def save(self) -> bool:
        """Persist the plan if it differs from the last saved shape.

        A call made while a save is in flight is queued and re-evaluated
        once that save finishes. A closed session never saves.

        Returns:
            True if the persistence layer was called and succeeded

        Raises:
            asyncio.CancelledError: The save was cancelled; the session is
                left DIRTY and accepts the next save
        """
        if self._closed:
            return False
        if self._in_flight:
            self._save_queued = True
            logger.debug("editor.save_queued")
            return False

        self.editor.recompute()
        snapshot = self.editor.snapshot()
        if snapshot == self._persisted:
            self.state = SaveState.CLEAN
            return False

        self._in_flight = True
        self.state = SaveState.SAVING
        try:
            plan = await self.persistence.save(self.editor.to_plan_input(), self.editor.plan_id)
        except asyncio.CancelledError:
            self._save_queued = False
            self.state = SaveState.DIRTY
            logger.info("editor.save_cancelled", plan_id=self.editor.plan_id)
            raise
        except Exception as e:
            self._save_queued = False
            self.state = SaveState.DIRTY
            logger.error("editor.save_failed", plan_id=self.editor.plan_id, error=str(e))
            self.notifications.error(SAVE_FAILED_MESSAGE, retry=self.save)
            return False
        finally:
            self._in_flight = False

        self.save_count += 1
        if self.editor.plan_id is None and plan is not None:
            self.editor.plan_id = plan.id
        self._persisted = snapshot
        self.state = SaveState.CLEAN
        self._refresh_state()
        logger.info("editor.saved", plan_id=self.editor.plan_id, state=self.state.value)

        if self._save_queued:
            self._save_queued = False
            if self.state is SaveState.DIRTY and not self._closed:
                await self.save()
        return True
