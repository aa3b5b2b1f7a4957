"""Pydantic schemas for modules and the per-user permission matrix."""

from __future__ import annotations

from pydantic import BaseModel, Field


class ModuleRead(BaseModel):
    id: int
    key: str
    name: str

    model_config = {"from_attributes": True}


class ModulePermissionRead(BaseModel):
    """One row per module; capabilities are false when no grant exists."""

    module_id: int
    key: str
    name: str
    can_view: bool = False
    can_create: bool = False
    can_update: bool = False
    can_delete: bool = False


class PermissionGrantIn(BaseModel):
    module_id: int = Field(alias="moduleId")
    can_view: bool = False
    can_create: bool = False
    can_update: bool = False
    can_delete: bool = False

    model_config = {"populate_by_name": True}


class PermissionUpdateRequest(BaseModel):
    permissions: list[PermissionGrantIn]


class PermissionGrantRead(BaseModel):
    id: int
    user_id: int
    module_id: int
    can_view: bool
    can_create: bool
    can_update: bool
    can_delete: bool

    model_config = {"from_attributes": True}
