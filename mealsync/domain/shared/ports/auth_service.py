"""Authentication service port (interface)."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from mealsync.domain.shared.identity import Identity


@dataclass(frozen=True)
class Credentials:
    """Inbound request credentials.

    Attributes:
        token: Bearer token (Authorization header, ``token`` cookie, or
            WebSocket connection parameter)
        dev_token: Value of the ``x-dev-token`` header, if any
    """

    token: Optional[str] = None
    dev_token: Optional[str] = None


class IAuthService(ABC):
    """Issues and validates bearer tokens.

    Allows swapping JWT for another session mechanism and mocking in tests.
    """

    @abstractmethod
    async def authenticate(self, credentials: Credentials) -> Optional[Identity]:
        """Resolve credentials to an identity.

        Returns:
            Identity, or None when credentials are missing or invalid.
            Never raises for bad tokens.
        """
        pass

    @abstractmethod
    def issue_token(self, identity: Identity) -> str:
        """Create a bearer token for ``identity``."""
        pass
