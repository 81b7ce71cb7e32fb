from __future__ import annotations

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, EmailStr, field_validator

from backoffice.core.roles import Role


class TeamMemberOut(BaseModel):
    id: UUID
    team_id: UUID
    user_id: UUID
    email: str
    full_name: Optional[str] = None
    role: str
    created_at: datetime


def _normalize_role(v):
    if isinstance(v, str):
        return v.strip().lower()
    return v


class TeamMemberRoleUpdate(BaseModel):
    role: Role

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v):
        return _normalize_role(v)


class TeamMemberCreate(BaseModel):
    email: EmailStr
    role: Role = Role.MEMBER

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v

    @field_validator("role", mode="before")
    @classmethod
    def normalize_role(cls, v):
        return _normalize_role(v)
