"""Domain entities for the authenticated identity and the acting user."""

from dataclasses import dataclass

from careops.domain.entities.profile import Profile


@dataclass(frozen=True)
class Principal:
    """An identity authenticated by the external credential service."""

    id: str
    email: str | None = None
    display_name: str = ""


@dataclass(frozen=True)
class Actor:
    """The principal performing an operation together with its resolved profile."""

    principal: Principal
    profile: Profile

    @property
    def uid(self) -> str:
        return self.principal.id
