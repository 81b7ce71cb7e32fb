# backoffice/api/v1/members.py
from __future__ import annotations

import logging
import uuid
from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.api.deps.permissions import require_permission
from backoffice.auth.context import AuthorizationContext
from backoffice.auth.errors import AuthorizationUnavailable
from backoffice.auth.hierarchy import can_manage_role
from backoffice.auth.permissions import Permission, coerce_role
from backoffice.core.roles import Role
from backoffice.crud.team_member import count_owners, get_membership, get_team_member, list_team_members
from backoffice.crud.user import get_user_by_email
from backoffice.db.session import get_db
from backoffice.models.team_member import TeamMember
from backoffice.models.user import User
from backoffice.schemas.team_member import TeamMemberCreate, TeamMemberOut, TeamMemberRoleUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/teams/{team_id}/members", tags=["members"])

# owner changes hands through /transfer-ownership; super_admin is never a team role
ASSIGNABLE_ROLES = {Role.ADMIN, Role.MEMBER, Role.VIEWER}


def _cannot_manage(acting: Role, target: Role) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail={
            "code": "rbac_cannot_manage_role",
            "message": f"A {acting.value} cannot manage a {target.value} member.",
            "role": acting.value,
            "target_role": target.value,
        },
    )


def _require_assignable(role: Role) -> None:
    if role not in ASSIGNABLE_ROLES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"role must be one of: {', '.join(sorted(r.value for r in ASSIGNABLE_ROLES))}",
        )


def _stored_role(member: TeamMember) -> Role:
    try:
        return coerce_role(member.role)
    except ValueError as exc:
        logger.error("Team member %s has unknown role %r", member.id, member.role)
        raise AuthorizationUnavailable("stored member role is invalid") from exc


def _member_out(m: TeamMember, u: User) -> TeamMemberOut:
    return TeamMemberOut(
        id=m.id,
        team_id=m.team_id,
        user_id=m.user_id,
        email=u.email,
        full_name=u.full_name,
        role=m.role,
        created_at=m.created_at,
    )


async def _get_member_or_404(db: AsyncSession, team_id: uuid.UUID, member_id: uuid.UUID) -> TeamMember:
    member = await get_team_member(db, team_id, member_id)
    if member is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Team member not found")
    return member


@router.get("", response_model=List[TeamMemberOut])
async def list_members(
    db: AsyncSession = Depends(get_db),
    context: AuthorizationContext = Depends(require_permission(Permission.MEMBERS_READ)),
):
    rows = await list_team_members(db, context.team_id)
    return [_member_out(m, u) for m, u in rows]


@router.post("", response_model=TeamMemberOut, status_code=status.HTTP_201_CREATED)
async def add_member(
    payload: TeamMemberCreate,
    db: AsyncSession = Depends(get_db),
    context: AuthorizationContext = Depends(require_permission(Permission.MEMBERS_INVITE)),
):
    """
    Add an existing user to the team directly. The granted role follows the hierarchy.
    """
    _require_assignable(payload.role)
    if not can_manage_role(context.effective_role, payload.role):
        raise _cannot_manage(context.effective_role, payload.role)

    user = await get_user_by_email(db, payload.email)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    if await get_membership(db, context.team_id, user.id) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User is already a team member")

    member = TeamMember(team_id=context.team_id, user_id=user.id, role=payload.role.value)
    db.add(member)

    try:
        await db.commit()
    except IntegrityError:
        await db.rollback()
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User is already a team member")

    await db.refresh(member)
    return _member_out(member, user)


@router.patch("/{member_id}")
async def update_member_role(
    member_id: uuid.UUID,
    payload: TeamMemberRoleUpdate,
    db: AsyncSession = Depends(get_db),
    context: AuthorizationContext = Depends(require_permission(Permission.MEMBERS_UPDATE_ROLE)),
):
    new_role = payload.role
    _require_assignable(new_role)

    target = await _get_member_or_404(db, context.team_id, member_id)

    if target.user_id == context.actor.id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="You cannot change your own role")

    current_role = _stored_role(target)
    if current_role == Role.OWNER:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot modify owner role; use transfer-ownership",
        )

    acting = context.effective_role
    # both the member as they are now and the role they would end up with
    if not can_manage_role(acting, current_role):
        raise _cannot_manage(acting, current_role)
    if not can_manage_role(acting, new_role):
        raise _cannot_manage(acting, new_role)

    target.role = new_role.value
    await db.commit()

    return {
        "status": "ok",
        "member_id": str(target.id),
        "user_id": str(target.user_id),
        "role": target.role,
    }


@router.delete("/{member_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_member(
    member_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    context: AuthorizationContext = Depends(require_permission(Permission.MEMBERS_REMOVE)),
):
    target = await _get_member_or_404(db, context.team_id, member_id)
    target_role = _stored_role(target)

    is_self = target.user_id == context.actor.id
    if is_self and target_role == Role.OWNER:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Owners cannot remove themselves")

    # leaving a team is always allowed; removing someone else follows the hierarchy
    if not is_self and not can_manage_role(context.effective_role, target_role):
        raise _cannot_manage(context.effective_role, target_role)

    if target_role == Role.OWNER and await count_owners(db, context.team_id) <= 1:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot remove the last team owner")

    await db.delete(target)
    await db.commit()
    return None
