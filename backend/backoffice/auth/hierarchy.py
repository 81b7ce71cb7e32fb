from __future__ import annotations

from types import MappingProxyType
from typing import List, Mapping

from backoffice.auth.permissions import RoleLike, coerce_role
from backoffice.core.roles import Role, TEAM_ROLES

ROLE_LEVELS: Mapping[Role, int] = MappingProxyType(
    {
        Role.VIEWER: 1,
        Role.MEMBER: 2,
        Role.ADMIN: 3,
        Role.OWNER: 4,
        Role.SUPER_ADMIN: 5,
    }
)


def role_level(role: RoleLike) -> int:
    return ROLE_LEVELS[coerce_role(role)]


def is_role_higher(role: RoleLike, other: RoleLike) -> bool:
    return role_level(role) > role_level(other)


def can_manage_role(acting_role: RoleLike, target_role: RoleLike) -> bool:
    """
    Whether `acting_role` may change or remove a member holding `target_role`.

    Explicit rules, not a level comparison:
      - super_admin manages everyone, other super_admins included
      - owner manages everyone except owners and super_admins
      - admin manages members and viewers only (not peer admins)
      - member / viewer manage nobody
    """
    acting = coerce_role(acting_role)
    target = coerce_role(target_role)

    if acting == Role.SUPER_ADMIN:
        return True

    if acting == Role.OWNER:
        return target not in {Role.OWNER, Role.SUPER_ADMIN}

    if acting == Role.ADMIN:
        return target in {Role.MEMBER, Role.VIEWER}

    return False


def assignable_roles(acting_role: RoleLike) -> List[Role]:
    """
    Team roles `acting_role` may grant, highest first.
    """
    return sorted(
        (r for r in TEAM_ROLES if can_manage_role(acting_role, r)),
        key=lambda r: ROLE_LEVELS[r],
        reverse=True,
    )
