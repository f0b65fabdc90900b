"""Drag-and-drop plan editor state machine.

In-memory, optimistic representation of a meal plan being edited:
ordered group columns, two fixed store columns, per-item quantities and
derived totals. Pure and synchronous; timing concerns (debounce, frame
batching, autosave) live in ``mealsync.client.editor_session``.

Invariant: every known item id sits in exactly one column (a group or the
store matching its type). Moves never duplicate or drop ids.

Example:
    >>> editor = PlanEditor.open(plan, ingredients=ingredients, meals=meals)
    >>> snacks = editor.add_group("Snacks")
    >>> editor.move(rice.id, INGREDIENT_STORE, snacks)
    True
    >>> editor.set_quantity(rice.id, 2)
    2.0
    >>> editor.recompute().macros.calories
    400.0
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple
from uuid import uuid4

from mealsync.domain.catalog.entities import (
    DEFAULT_GROUP,
    Ingredient,
    Macros,
    Meal,
    MealPlan,
    MealPlanItem,
)
from mealsync.domain.catalog.kinds import ITEM_TYPE_INGREDIENT, ITEM_TYPE_MEAL
from mealsync.domain.editor.columns import (
    DEFAULT_GROUPS,
    INGREDIENT_STORE,
    MEAL_STORE,
    NEW_GROUP_TITLE,
    STORE_COLUMNS,
    CatalogItem,
    Column,
    ColumnType,
    store_column_for,
)

MIN_QUANTITY = 1.0


@dataclass(frozen=True)
class Totals:
    """Derived nutrition and price of the group-resident items."""

    macros: Macros = Macros()
    price: float = 0.0

    def __add__(self, other: "Totals") -> "Totals":
        return Totals(macros=self.macros + other.macros, price=self.price + other.price)


@dataclass(frozen=True)
class PlanSnapshot:
    """Comparable shape of a plan, used for dirty-checking saves."""

    name: str
    items: Tuple[MealPlanItem, ...]
    macros: Macros
    price: float

    @classmethod
    def of_plan(cls, plan: Optional[MealPlan], name: str = "") -> "PlanSnapshot":
        if plan is None:
            return cls(name=name, items=(), macros=Macros(), price=0.0)
        return cls(name=plan.name, items=tuple(plan.items), macros=plan.macros, price=plan.price)


def normalize_quantity(value: Any) -> float:
    """Non-positive, NaN or non-numeric input resets to 1."""
    try:
        quantity = float(value)
    except (TypeError, ValueError):
        return MIN_QUANTITY
    if math.isnan(quantity) or math.isinf(quantity) or quantity <= 0:
        return MIN_QUANTITY
    return quantity


def _slug(title: str) -> str:
    return re.sub(r"\s+", "-", title.strip()).lower()


class PlanEditor:
    """Board state for one meal plan.

    Attributes:
        plan_id: Persisted plan id, None until the first successful create
        owner_id: Owner of the plan and of every catalog entity
        name: Plan name
        columns: Column metadata by column id
        items: Ordered item ids by column id
        group_order: Ordered ids of the plan group columns
        quantities: Quantity by item id (missing means 1)
        totals: Last computed totals (see ``recompute``)
    """

    def __init__(
        self,
        catalog: Iterable[CatalogItem],
        owner_id: str,
        name: str = "",
        plan_id: Optional[str] = None,
    ) -> None:
        self.plan_id = plan_id
        self.owner_id = owner_id
        self.name = name
        self.catalog: Dict[str, CatalogItem] = {}
        self.columns: Dict[str, Column] = {
            INGREDIENT_STORE: Column(INGREDIENT_STORE, "Ingredients", ColumnType.INGREDIENT_STORE),
            MEAL_STORE: Column(MEAL_STORE, "Meals", ColumnType.MEAL_STORE),
        }
        self.items: Dict[str, List[str]] = {INGREDIENT_STORE: [], MEAL_STORE: []}
        self.group_order: List[str] = []
        self.quantities: Dict[str, float] = {}
        self.totals = Totals()

        for entry in catalog:
            self.catalog[entry.id] = entry
            self.items[store_column_for(entry.type)].append(entry.id)

    # ------------------------------------------------------------------
    # Initialization
    # ------------------------------------------------------------------

    @classmethod
    def open(
        cls,
        plan: Optional[MealPlan],
        ingredients: Sequence[Ingredient],
        meals: Sequence[Meal],
        owner_id: Optional[str] = None,
    ) -> "PlanEditor":
        """Build the board from a persisted plan (or a new, empty one).

        Items are partitioned by ``group`` into one column per distinct group,
        in order of first appearance. Entity ids not placed in any group fill
        the two store columns. An empty plan opens with the Breakfast, Lunch
        and Dinner groups. Plan items that reference unknown entities, and
        repeated references to an id already placed, are skipped.
        """
        if plan is None and owner_id is None:
            raise ValueError("owner_id is required when opening a new plan")

        catalog = [CatalogItem.from_entity(i) for i in ingredients]
        catalog += [CatalogItem.from_entity(m) for m in meals]
        editor = cls(
            catalog=catalog,
            owner_id=plan.user_id if plan is not None else owner_id,  # type: ignore[arg-type]
            name=plan.name if plan is not None else "",
            plan_id=plan.id if plan is not None else None,
        )

        plan_items = list(plan.items) if plan is not None else []
        if not plan_items:
            for title in DEFAULT_GROUPS:
                editor.add_group(title)
            editor.recompute()
            return editor

        group_ids: Dict[str, str] = {}
        for item in plan_items:
            group = item.group or DEFAULT_GROUP
            if group not in group_ids:
                group_ids[group] = editor.add_group(group)
            if item.item_id not in editor.catalog:
                continue
            store = store_column_for(editor.catalog[item.item_id].type)
            if item.item_id not in editor.items[store]:
                continue
            editor.items[store].remove(item.item_id)
            editor.items[group_ids[group]].append(item.item_id)
            editor.quantities[item.item_id] = normalize_quantity(item.quantity)

        editor.recompute()
        return editor

    # ------------------------------------------------------------------
    # Moves
    # ------------------------------------------------------------------

    def move(
        self, item_id: str, source: str, target: str, index: Optional[int] = None
    ) -> bool:
        """Move an item between (or within) columns.

        Args:
            item_id: Item being dragged
            source: Column the item currently sits in
            target: Destination column
            index: Position in the target column; None appends

        Returns:
            True if the board changed. Unknown ids, an item not in
            ``source``, or an ingredient dropped on the meal store (and vice
            versa) leave the board untouched and return False.
        """
        entry = self.catalog.get(item_id)
        if entry is None or source not in self.items or target not in self.items:
            return False
        if item_id not in self.items[source]:
            return False
        if target in STORE_COLUMNS and store_column_for(entry.type) != target:
            return False

        self.items[source].remove(item_id)
        destination = self.items[target]
        position = len(destination) if index is None else max(0, min(index, len(destination)))
        destination.insert(position, item_id)
        return True

    def move_group(self, group_id: str, index: int) -> bool:
        """Reorder a plan group. Store columns are not reorderable."""
        if group_id not in self.group_order:
            return False
        self.group_order.remove(group_id)
        position = max(0, min(index, len(self.group_order)))
        self.group_order.insert(position, group_id)
        return True

    # ------------------------------------------------------------------
    # Group lifecycle
    # ------------------------------------------------------------------

    def add_group(self, title: str = NEW_GROUP_TITLE) -> str:
        """Append a new empty group column and return its id.

        A title already used by another group gets a numeric suffix
        ("Lunch 2"), since saved items are keyed by group title.
        """
        if self._title_taken(title):
            base, n = title, 2
            while self._title_taken(f"{base} {n}"):
                n += 1
            title = f"{base} {n}"
        group_id = f"group-{_slug(title) or 'untitled'}"
        if group_id in self.columns:
            group_id = f"{group_id}-{uuid4().hex[:8]}"

        self.columns[group_id] = Column(group_id, title, ColumnType.MEAL_PLAN)
        self.items[group_id] = []
        self.group_order.append(group_id)
        return group_id

    def remove_group(self, group_id: str) -> bool:
        """Return the group's items to their stores, then delete the group."""
        if group_id not in self.group_order:
            return False

        for item_id in self.items[group_id]:
            self.items[store_column_for(self.catalog[item_id].type)].append(item_id)

        del self.items[group_id]
        del self.columns[group_id]
        self.group_order.remove(group_id)
        return True

    def rename_group(self, group_id: str, title: str) -> bool:
        """Retitle a group. Refuses a title another group already uses."""
        if group_id not in self.group_order:
            return False
        if self._title_taken(title, exclude=group_id):
            return False
        self.columns[group_id].title = title
        return True

    def rename_plan(self, name: str) -> None:
        self.name = name

    def _title_taken(self, title: str, exclude: Optional[str] = None) -> bool:
        return any(
            self.columns[g].title == title for g in self.group_order if g != exclude
        )

    # ------------------------------------------------------------------
    # Quantities and totals
    # ------------------------------------------------------------------

    def set_quantity(self, item_id: str, quantity: Any) -> float:
        """Store a normalized quantity and return it.

        Raises:
            KeyError: ``item_id`` is not part of the catalog
        """
        if item_id not in self.catalog:
            raise KeyError(item_id)
        normalized = normalize_quantity(quantity)
        self.quantities[item_id] = normalized
        return normalized

    def quantity(self, item_id: str) -> float:
        return self.quantities.get(item_id, MIN_QUANTITY)

    def group_totals(self, group_id: str) -> Totals:
        """Totals of one column (zero for unknown columns)."""
        totals = Totals()
        for item_id in self.items.get(group_id, []):
            entry = self.catalog[item_id]
            quantity = self.quantity(item_id)
            totals = totals + Totals(macros=entry.macros.scale(quantity), price=entry.price * quantity)
        return totals

    def recompute(self) -> Totals:
        """Recompute totals over group-resident items only."""
        totals = Totals()
        for group_id in self.group_order:
            totals = totals + self.group_totals(group_id)
        self.totals = totals
        return totals

    def column_title(self, column_id: str) -> str:
        """Display title; plan groups show their calories."""
        column = self.columns.get(column_id)
        if column is None:
            return column_id
        if column.type is ColumnType.MEAL_PLAN:
            calories = self.group_totals(column_id).macros.calories
            return f"{column.title} ({calories:g} cal)"
        return column.title

    # ------------------------------------------------------------------
    # Catalog changes
    # ------------------------------------------------------------------

    def sync_catalog(self, ingredients: Sequence[Ingredient], meals: Sequence[Meal]) -> bool:
        """Reconcile the board with a freshly fetched catalog.

        New entities land at the end of their store column, entities that no
        longer exist are dropped from whichever column holds them, and
        changed nutrition or price data replaces the old card.

        Returns:
            True if anything changed
        """
        fresh = {c.id: c for c in map(CatalogItem.from_entity, [*ingredients, *meals])}
        changed = False

        for item_id in list(self.catalog):
            if item_id not in fresh:
                for column_items in self.items.values():
                    if item_id in column_items:
                        column_items.remove(item_id)
                self.quantities.pop(item_id, None)
                del self.catalog[item_id]
                changed = True

        for item_id, entry in fresh.items():
            current = self.catalog.get(item_id)
            if current is None:
                self.items[store_column_for(entry.type)].append(item_id)
                changed = True
            elif current != entry:
                changed = True
            self.catalog[item_id] = entry

        return changed

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_items(self) -> List[MealPlanItem]:
        """Flatten the groups (in order) into plan items; stores excluded."""
        result: List[MealPlanItem] = []
        for group_id in self.group_order:
            title = self.columns[group_id].title or DEFAULT_GROUP
            for item_id in self.items[group_id]:
                result.append(
                    MealPlanItem(
                        type=self.catalog[item_id].type,
                        item_id=item_id,
                        quantity=self.quantity(item_id),
                        group=title,
                    )
                )
        return result

    def snapshot(self) -> PlanSnapshot:
        """Shape that a save would persist, using the current totals."""
        return PlanSnapshot(
            name=self.name,
            items=tuple(self.to_items()),
            macros=self.totals.macros,
            price=self.totals.price,
        )

    def to_plan_input(self) -> Dict[str, Any]:
        """Record for a create/update mutation."""
        return {
            "user_id": self.owner_id,
            "name": self.name,
            "items": [item.to_record() for item in self.to_items()],
            "macros": self.totals.macros.to_record(),
            "price": self.totals.price,
        }

    def all_item_ids(self) -> List[str]:
        """Every item id on the board, across all columns."""
        return [item_id for column_items in self.items.values() for item_id in column_items]

    def column_of(self, item_id: str) -> Optional[str]:
        for column_id, column_items in self.items.items():
            if item_id in column_items:
                return column_id
        return None

    def items_of_type(self, item_type: str) -> List[str]:
        if item_type not in (ITEM_TYPE_INGREDIENT, ITEM_TYPE_MEAL):
            raise ValueError(f"Unknown item type: {item_type}")
        return [i for i in self.all_item_ids() if self.catalog[i].type == item_type]
