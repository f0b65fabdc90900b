"""Caller context and ownership-key resolution."""

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from mealsync.domain.shared.identity import Identity


@dataclass(frozen=True)
class CallerContext:
    """Who is calling, and from which client session.

    Attributes:
        identity: Authenticated identity, None for anonymous callers
        client_id: Origin client session (``x-client-id``), None if absent
    """

    identity: Optional[Identity] = None
    client_id: Optional[str] = None


@dataclass(frozen=True)
class MutationArgs:
    """Arguments of a single-record operation.

    Attributes:
        user_id: Explicit owner argument
        record_id: Target record id (updates, deletes, lookups)
        record: Record fields to create or patch
        filter: Equality filter (may carry ``user_id``)
    """

    user_id: Optional[str] = None
    record_id: Optional[str] = None
    record: Mapping[str, Any] = field(default_factory=dict)
    filter: Mapping[str, Any] = field(default_factory=dict)

    def owner_filter(self, owner: Optional[str]) -> Dict[str, Any]:
        merged = dict(self.filter)
        if owner is not None:
            merged["user_id"] = owner
        return merged


def _text(value: Any) -> Optional[str]:
    return value if isinstance(value, str) and value else None


def resolve_ownership_key(args: MutationArgs) -> Optional[str]:
    """Owner id a mutation acts on, from the arguments only.

    Precedence: explicit ``user_id``, then ``filter["user_id"]``, then
    ``record["user_id"]``. Stored data is never consulted.

    Examples:
        >>> resolve_ownership_key(MutationArgs(user_id="a", record={"user_id": "b"}))
        'a'
        >>> resolve_ownership_key(MutationArgs(record={"name": "x"})) is None
        True
    """
    return (
        _text(args.user_id)
        or _text(args.filter.get("user_id"))
        or _text(args.record.get("user_id"))
    )
