"""Domain entity for the application-level user profile."""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class Role(str, Enum):
    """Roles a profile can hold. New sign-ins start as PENDING."""

    PENDING = "pending"
    ADMIN = "admin"
    DIRECTOR = "director"
    FINANCE = "finance"
    STAFF = "staff"

    @classmethod
    def parse(cls, value: Any) -> "Role":
        """Map a stored role value to a Role, treating unknown values as PENDING."""
        try:
            return cls(str(value).lower())
        except ValueError:
            return cls.PENDING


@dataclass(frozen=True)
class Profile:
    """One profile per principal, keyed by the principal id.

    Activation (``is_active``) and role changes are administrative acts
    performed outside this application.
    """

    principal_id: str
    role: Role = Role.PENDING
    is_active: bool = False
    email: str | None = None
    display_name: str = ""
    created_at: datetime | str | None = None

    @property
    def is_elevated(self) -> bool:
        return self.role in (Role.ADMIN, Role.DIRECTOR)

    @classmethod
    def from_document(cls, principal_id: str, data: dict[str, Any]) -> "Profile":
        return cls(
            principal_id=principal_id,
            role=Role.parse(data.get("role", Role.PENDING.value)),
            is_active=data.get("isActive") is True,
            email=data.get("email"),
            display_name=data.get("displayName") or "",
            created_at=data.get("createdAt"),
        )
