"""Pydantic schemas for the session, module catalogue and policy endpoints."""

from pydantic import BaseModel

from careops.domain.entities import ModuleGroup, Role


class ProfileResponse(BaseModel):
    principal_id: str
    email: str | None
    display_name: str
    role: Role
    is_active: bool
    state: str


class ModuleResponse(BaseModel):
    id: str
    label: str
    group: ModuleGroup
    fields: list[str]
    field_labels: list[str]
    writable: bool
