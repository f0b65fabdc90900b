"""Entity kinds and the event names they publish under."""

from enum import Enum


class EntityKind(str, Enum):
    """Kinds of owned entities that can be mutated and observed live."""

    INGREDIENT = "ingredient"
    MEAL = "meal"
    MEAL_PLAN = "meal_plan"

    @property
    def event_name(self) -> str:
        """Event name used as the topic prefix (e.g. ``MEAL_PLAN_UPDATED``)."""
        return f"{self.name}_UPDATED"

    @property
    def payload_field(self) -> str:
        """Key of the record in a delivered payload (e.g. ``mealPlanUpdated``)."""
        head, *rest = self.value.split("_")
        return head + "".join(part.capitalize() for part in rest) + "Updated"


# Item types a MealPlanItem (and an editor column) can hold
ITEM_TYPE_INGREDIENT = "ingredient"
ITEM_TYPE_MEAL = "meal"
ITEM_TYPES = (ITEM_TYPE_INGREDIENT, ITEM_TYPE_MEAL)
