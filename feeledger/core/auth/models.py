from dataclasses import dataclass
from enum import StrEnum


class ActorRole(StrEnum):
    """Roles carried in access tokens issued by the identity service."""

    SUPER_ADMIN = "SUPER_ADMIN"
    SCHOOL_ADMIN = "SCHOOL_ADMIN"
    STAFF = "STAFF"
    STUDENT = "STUDENT"
    PARENT = "PARENT"


@dataclass(frozen=True)
class Actor:
    """
    The authenticated caller of a request.

    Users live in the identity service; the ledger only keeps the id, name
    and role from the verified token for audit and permission checks.
    """

    id: str
    role: str
    name: str | None = None

    def has_role(self, *roles: ActorRole) -> bool:
        """Check if actor has any of the specified roles."""
        return self.role in [r.value for r in roles]

    @property
    def display_name(self) -> str:
        return self.name or self.id
