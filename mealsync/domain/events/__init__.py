"""Change events flowing from mutations to live subscribers."""

from mealsync.domain.events.change_event import ChangeEvent, topic_for

__all__ = ["ChangeEvent", "topic_for"]
