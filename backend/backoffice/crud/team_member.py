# backend/backoffice/crud/team_member.py
from __future__ import annotations

import uuid
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.core.roles import Role
from backoffice.models.team_member import TeamMember
from backoffice.models.user import User


async def get_membership(db: AsyncSession, team_id: uuid.UUID, user_id: uuid.UUID) -> Optional[TeamMember]:
    stmt = select(TeamMember).where(
        TeamMember.team_id == team_id,
        TeamMember.user_id == user_id,
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def get_team_member(db: AsyncSession, team_id: uuid.UUID, member_id: uuid.UUID) -> Optional[TeamMember]:
    """
    Member row by its own id, scoped to the team so ids from another team never match.
    """
    stmt = select(TeamMember).where(
        TeamMember.id == member_id,
        TeamMember.team_id == team_id,
    )
    return (await db.execute(stmt)).scalar_one_or_none()


async def list_team_members(db: AsyncSession, team_id: uuid.UUID) -> List[Tuple[TeamMember, User]]:
    stmt = (
        select(TeamMember, User)
        .join(User, User.id == TeamMember.user_id)
        .where(TeamMember.team_id == team_id)
        .order_by(TeamMember.created_at.asc(), User.email.asc())
    )
    res = await db.execute(stmt)
    return [(m, u) for m, u in res.all()]


async def count_owners(db: AsyncSession, team_id: uuid.UUID) -> int:
    stmt = (
        select(func.count(TeamMember.id))
        .where(TeamMember.team_id == team_id)
        .where(TeamMember.role == Role.OWNER.value)
    )
    res = await db.execute(stmt)
    return int(res.scalar() or 0)
