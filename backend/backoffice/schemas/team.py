from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator


class TeamOut(BaseModel):
    id: UUID
    name: str
    is_active: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class TeamUpdate(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: Optional[str] = Field(default=None, min_length=2, max_length=200)

    @field_validator("name")
    @classmethod
    def normalize_name(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = " ".join(v.strip().split())
        if len(v) < 2:
            raise ValueError("name must be at least 2 characters")
        return v


class TeamAccessOut(BaseModel):
    """
    What the UI caches to drive its guards. Display only; the server re-checks
    every request.
    """

    team_id: UUID
    user_id: UUID
    role: str
    is_global_override: bool
    permissions: List[str]
    assignable_roles: List[str]
    capabilities: Dict[str, bool]


class TransferOwnership(BaseModel):
    member_id: UUID
