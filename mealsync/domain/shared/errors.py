"""Domain exceptions.

Typed exceptions for explicit error handling across the mealsync layers.
All of them inherit from MealSyncError so callers can catch the whole family
with a single except clause.

Two failure conditions are deliberately NOT exceptions:
- PublishSkipped: ownership key unresolved after a successful mutation.
  Logged by the mutation interceptor, never raised.
- DeliveryGap: a subscriber was offline during a publish. Silent.
"""

from __future__ import annotations


class MealSyncError(Exception):
    """Base exception for all mealsync domain errors."""

    pass


class UnauthorizedError(MealSyncError):
    """Caller is neither the owner of the target data nor the dev identity.

    Raised before the underlying mutation executes, so no write happens
    and no change event is published.

    Example:
        >>> raise UnauthorizedError(
        ...     "Unauthorized access: You can only access or modify your own data."
        ... )
    """

    pass


class ValidationFailure(MealSyncError):
    """Entity fields are malformed.

    Raised when:
    - A required field is missing or empty (name, unit, user_id)
    - Macros are negative or above their ceilings
    - A plan item has a non-positive quantity or an unknown type
    - An update tries to change the owner of a record
    """

    def __init__(self, message: str, field: str | None = None) -> None:
        super().__init__(message)
        self.field = field


class DuplicateRecordError(ValidationFailure):
    """Another record of the same kind already uses this (user_id, name)."""

    pass


class RecordNotFoundError(MealSyncError):
    """Record does not exist, or is not visible under the ownership filter."""

    pass
