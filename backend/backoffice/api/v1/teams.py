# backoffice/api/v1/teams.py
from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import delete
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.api.deps.permissions import (
    get_team_context,
    require_permission,
    require_team_roles,
)
from backoffice.auth.context import AuthorizationContext
from backoffice.auth.guards import RoleView
from backoffice.auth.hierarchy import assignable_roles
from backoffice.auth.permissions import Permission, get_role_permissions
from backoffice.core.roles import Role
from backoffice.crud.team_member import get_team_member
from backoffice.db.session import get_db
from backoffice.models.team import Team
from backoffice.models.team_member import TeamMember
from backoffice.schemas.team import TeamAccessOut, TeamOut, TeamUpdate, TransferOwnership

router = APIRouter(prefix="/teams", tags=["teams"])


async def _get_team_or_404(db: AsyncSession, team_id: uuid.UUID) -> Team:
    team = await db.get(Team, team_id)
    if team is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Team not found")
    return team


def _access_summary(context: AuthorizationContext) -> TeamAccessOut:
    view = RoleView(context.effective_role)
    return TeamAccessOut(
        team_id=context.team_id,
        user_id=context.actor.id,
        role=context.effective_role.value,
        is_global_override=context.is_global_override,
        permissions=sorted(p.value for p in get_role_permissions(context.effective_role)),
        assignable_roles=[r.value for r in assignable_roles(context.effective_role)],
        capabilities=view.capabilities(),
    )


# Registered before "/{team_id}" so "access" is not read as a team id.
@router.get("/access", response_model=TeamAccessOut)
async def get_current_team_access(
    context: AuthorizationContext = Depends(get_team_context),
):
    """
    Access summary for the team named by the X-Team-Id header.
    """
    return _access_summary(context)


@router.get("/{team_id}", response_model=TeamOut)
async def get_team(
    db: AsyncSession = Depends(get_db),
    context: AuthorizationContext = Depends(require_permission(Permission.TEAM_READ)),
):
    return await _get_team_or_404(db, context.team_id)


@router.patch("/{team_id}", response_model=TeamOut)
async def update_team(
    payload: TeamUpdate,
    db: AsyncSession = Depends(get_db),
    context: AuthorizationContext = Depends(require_permission(Permission.TEAM_UPDATE)),
):
    data = payload.model_dump(exclude_unset=True)
    if not data:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="No fields provided to update.")

    team = await _get_team_or_404(db, context.team_id)
    if "name" in data and data["name"] is not None:
        team.name = data["name"]

    await db.commit()
    await db.refresh(team)
    return team


@router.delete("/{team_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_team(
    db: AsyncSession = Depends(get_db),
    context: AuthorizationContext = Depends(require_permission(Permission.TEAM_DELETE)),
):
    team = await _get_team_or_404(db, context.team_id)

    await db.execute(delete(TeamMember).where(TeamMember.team_id == team.id))
    await db.delete(team)
    await db.commit()
    return None


# ---------------------------------------------------------
# Access summary (drives UI guards)
# ---------------------------------------------------------
@router.get("/{team_id}/access", response_model=TeamAccessOut)
async def get_my_team_access(
    context: AuthorizationContext = Depends(get_team_context),
):
    return _access_summary(context)


# ---------------------------------------------------------
# Ownership
# ---------------------------------------------------------
@router.post("/{team_id}/transfer-ownership", status_code=status.HTTP_204_NO_CONTENT)
async def transfer_team_ownership(
    payload: TransferOwnership,
    db: AsyncSession = Depends(get_db),
    context: AuthorizationContext = Depends(require_team_roles(Role.OWNER)),
):
    """
    Only the owner may hand the team over. The previous owner stays on as admin.
    """
    current = context.membership
    target = await get_team_member(db, context.team_id, payload.member_id)
    if target is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Team member not found")

    if target.id == current.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You already own this team")

    target.role = Role.OWNER.value
    current.role = Role.ADMIN.value

    await db.commit()
    return None
