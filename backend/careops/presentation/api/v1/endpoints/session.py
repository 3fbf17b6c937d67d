"""Session endpoints: the caller's profile, visible modules and the policy table."""

from fastapi import APIRouter, Depends

from careops.application.schemas import ModuleResponse, ProfileResponse
from careops.application.services import GateState
from careops.application.services import authorization_policy as policy
from careops.application.services.module_registry import field_label
from careops.domain.entities import Actor
from careops.infrastructure.dependencies import get_actor

router = APIRouter(tags=["Session"])


@router.get("/me", response_model=ProfileResponse)
async def read_me(actor: Actor = Depends(get_actor)) -> ProfileResponse:
    """The caller's profile; created pending and inactive on first sight."""
    profile = actor.profile
    state = GateState.ACTIVE if profile.is_active else GateState.AWAITING_ACTIVATION
    return ProfileResponse(
        principal_id=profile.principal_id,
        email=profile.email,
        display_name=profile.display_name,
        role=profile.role,
        is_active=profile.is_active,
        state=state.value,
    )


@router.get("/modules", response_model=list[ModuleResponse])
async def list_modules(actor: Actor = Depends(get_actor)) -> list[ModuleResponse]:
    """Modules the caller may open, in navigation order."""
    return [
        ModuleResponse(
            id=m.id,
            label=m.label,
            group=m.group,
            fields=list(m.fields),
            field_labels=[field_label(f) for f in m.fields],
            writable=policy.can_write(actor.profile, m.id),
        )
        for m in policy.visible_modules(actor.profile)
    ]


@router.get("/policy")
async def read_policy() -> dict:
    return policy.permission_matrix()
