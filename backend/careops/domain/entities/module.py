"""Domain entity describing a record category (module)."""

from dataclasses import dataclass
from enum import Enum


class ModuleGroup(str, Enum):
    """Display groups; FINANCE is also an authorization boundary."""

    SYSTEM = "SYSTEM"
    CLINICAL = "CLINICAL"
    HR = "HR"
    LOGISTICS = "LOGISTICS"
    FINANCE = "FINANCE"
    PORTALS = "PORTALS"


@dataclass(frozen=True)
class ModuleDescriptor:
    """Immutable catalogue entry for one record category."""

    id: str
    label: str
    group: ModuleGroup
    fields: tuple[str, ...] = ()
