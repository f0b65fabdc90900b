"""Client session: per-tab identity used to tag mutations and spot echoes."""

from dataclasses import dataclass, field
from typing import Dict, Optional
from uuid import uuid4

CLIENT_ID_HEADER = "x-client-id"


@dataclass
class ClientSession:
    """One browser-tab-like session.

    Constructed explicitly and passed to every component that mutates or
    subscribes, so two sessions in one process stay independent.

    Attributes:
        client_id: Random id, stable for the session's lifetime
        owner_id: Logged-in user, None until known
        token: Bearer token, None for anonymous or dev-override sessions
        dev_token: Value sent as ``x-dev-token`` (development only)
    """

    client_id: str = field(default_factory=lambda: str(uuid4()))
    owner_id: Optional[str] = None
    token: Optional[str] = None
    dev_token: Optional[str] = None

    @classmethod
    def create(cls, owner_id: Optional[str] = None, token: Optional[str] = None) -> "ClientSession":
        return cls(owner_id=owner_id, token=token)

    def headers(self) -> Dict[str, str]:
        """HTTP headers carried by every request of this session."""
        headers = {CLIENT_ID_HEADER: self.client_id}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if self.dev_token:
            headers["x-dev-token"] = self.dev_token
        return headers

    def is_own(self, source_client_id: Optional[str]) -> bool:
        """True when a change was caused by this very session."""
        return source_client_id is not None and source_client_id == self.client_id
