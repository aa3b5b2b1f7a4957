"""Pydantic schemas for staff accounts and login."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, field_validator


def _normalise_email(v: str) -> str:
    v = v.strip().lower()
    local, _, domain = v.partition("@")
    if not local or "." not in domain:
        raise ValueError("Invalid email format")
    return v


class StaffCreate(BaseModel):
    full_name: str
    email: str
    password: str

    @field_validator("full_name")
    @classmethod
    def _name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Full name is required")
        if len(v) > 255:
            raise ValueError("Full name must not exceed 255 characters")
        return v

    @field_validator("email")
    @classmethod
    def _email(cls, v: str) -> str:
        return _normalise_email(v)

    @field_validator("password")
    @classmethod
    def _password(cls, v: str) -> str:
        if len(v) < 6:
            raise ValueError("Password must be at least 6 characters")
        return v


class StaffStatusUpdate(BaseModel):
    is_active: bool


class StaffStatusRead(BaseModel):
    id: int
    is_active: bool

    model_config = {"from_attributes": True}


class UserRead(BaseModel):
    id: int
    full_name: str
    email: str
    role: str
    is_active: bool
    created_at: datetime | None = None

    model_config = {"from_attributes": True}


class CurrentUser(UserRead):
    permissions: list[str] = []


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: CurrentUser
