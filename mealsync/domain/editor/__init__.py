"""Plan editor board: columns, moves, quantities and totals."""

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
from mealsync.domain.editor.plan_editor import (
    PlanEditor,
    PlanSnapshot,
    Totals,
    normalize_quantity,
)

__all__ = [
    "CatalogItem",
    "Column",
    "ColumnType",
    "DEFAULT_GROUPS",
    "INGREDIENT_STORE",
    "MEAL_STORE",
    "NEW_GROUP_TITLE",
    "PlanEditor",
    "PlanSnapshot",
    "STORE_COLUMNS",
    "Totals",
    "normalize_quantity",
    "store_column_for",
]
