"""Caller identity as produced by the auth service."""

from dataclasses import dataclass

DEV_IDENTITY_ID = "dev"
ROLE_USER = "user"
ROLE_ADMIN = "admin"


@dataclass(frozen=True)
class Identity:
    """Authenticated caller.

    Attributes:
        id: User id, or ``"dev"`` for the developer/admin override identity
        role: ``"user"`` or ``"admin"``
    """

    id: str
    role: str = ROLE_USER

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Identity id cannot be empty")

    @property
    def is_dev(self) -> bool:
        """True for the distinguished developer identity."""
        return self.id == DEV_IDENTITY_ID

    @classmethod
    def dev(cls) -> "Identity":
        return cls(id=DEV_IDENTITY_ID, role=ROLE_ADMIN)
