"""Authorization policy: pure role/category decisions.

This module is the single source of truth for access rules. The record
services call it before every write and the HTTP layer calls the same
functions; ``permission_matrix()`` exports the rules for an enforcement
layer at the storage boundary.
"""

from careops.application.services.module_registry import MODULES, get_module
from careops.domain.entities import ModuleDescriptor, ModuleGroup, Profile, Role
from careops.domain.exceptions import UnauthorizedError

ELEVATED_ROLES = frozenset({Role.ADMIN, Role.DIRECTOR})
FINANCE_ROLES = frozenset({Role.ADMIN, Role.DIRECTOR, Role.FINANCE})

# Categories any active profile may write.
OPERATIONAL_CATEGORIES = frozenset({"evv", "timeclock", "attendance"})


def _role(profile: Profile | None) -> Role:
    return profile.role if profile is not None else Role.PENDING


def _active(profile: Profile | None) -> bool:
    return profile is not None and profile.is_active


def can_see(profile: Profile | None, category: str) -> bool:
    if get_module(category).group == ModuleGroup.FINANCE:
        return _role(profile) in FINANCE_ROLES
    return True


def can_write(profile: Profile | None, category: str) -> bool:
    if not _active(profile):
        return False
    if _role(profile) in ELEVATED_ROLES:
        return True
    return category in OPERATIONAL_CATEGORIES


def can_archive(profile: Profile | None) -> bool:
    return _active(profile) and _role(profile) in ELEVATED_ROLES


def can_discharge(profile: Profile | None) -> bool:
    return can_archive(profile)


def ensure_can_see(profile: Profile | None, category: str) -> None:
    if not _active(profile) or not can_see(profile, category):
        raise UnauthorizedError("read", category)


def ensure_can_write(profile: Profile | None, category: str) -> None:
    if not can_write(profile, category):
        raise UnauthorizedError("write", category)


def visible_modules(profile: Profile | None) -> list[ModuleDescriptor]:
    return [m for m in MODULES if can_see(profile, m.id)]


def permission_matrix() -> dict[str, dict[str, dict[str, bool]]]:
    """Render the policy for every role and category, assuming an active profile."""
    matrix: dict[str, dict[str, dict[str, bool]]] = {}
    for role in Role:
        profile = Profile(principal_id="", role=role, is_active=True)
        matrix[role.value] = {
            m.id: {
                "see": can_see(profile, m.id),
                "write": can_write(profile, m.id),
            }
            for m in MODULES
            if m.fields
        }
        matrix[role.value]["*"] = {
            "archive": can_archive(profile),
            "discharge": can_discharge(profile),
        }
    return matrix
