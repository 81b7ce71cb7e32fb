"""
Presentation-side permission helpers.

These read a locally held copy of the user's role (from a session payload,
a template context, ...) to decide what to show. They are never an access
check: the server-side gate is the only authority.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, Optional, TypeVar, Union

from backoffice.auth.hierarchy import can_manage_role
from backoffice.auth.permissions import (
    Permission,
    PermissionLike,
    RoleLike,
    coerce_role,
    has_all_permissions,
    has_any_permission,
    has_permission,
)
from backoffice.core.roles import Role

T = TypeVar("T")
F = TypeVar("F")

MEMBER_MANAGEMENT = (
    Permission.MEMBERS_INVITE,
    Permission.MEMBERS_UPDATE_ROLE,
    Permission.MEMBERS_REMOVE,
)
SUBACCOUNT_MANAGEMENT = (
    Permission.SUBACCOUNTS_CREATE,
    Permission.SUBACCOUNTS_UPDATE,
    Permission.SUBACCOUNTS_DELETE,
)


@dataclass(frozen=True)
class RoleView:
    role: Optional[Role] = None

    @classmethod
    def from_cached(cls, value: Optional[Union[Role, str]]) -> "RoleView":
        # A stale or unknown cached value hides everything rather than erroring.
        if not value:
            return cls(None)
        try:
            return cls(coerce_role(value))
        except ValueError:
            return cls(None)

    def can(self, permission: PermissionLike) -> bool:
        return self.role is not None and has_permission(self.role, permission)

    def can_any(self, permissions: Iterable[PermissionLike]) -> bool:
        return self.role is not None and has_any_permission(self.role, permissions)

    def can_all(self, permissions: Iterable[PermissionLike]) -> bool:
        return self.role is not None and has_all_permissions(self.role, permissions)

    def can_manage(self, target_role: RoleLike) -> bool:
        return self.role is not None and can_manage_role(self.role, target_role)

    @property
    def is_owner(self) -> bool:
        return self.role == Role.OWNER

    @property
    def is_admin_or_owner(self) -> bool:
        return self.role in {Role.ADMIN, Role.OWNER}

    @property
    def can_manage_members(self) -> bool:
        return self.can_any(MEMBER_MANAGEMENT)

    @property
    def can_manage_team(self) -> bool:
        return self.can(Permission.TEAM_UPDATE)

    @property
    def can_manage_billing(self) -> bool:
        return self.can(Permission.TEAM_MANAGE_BILLING)

    @property
    def can_manage_subaccounts(self) -> bool:
        return self.can_any(SUBACCOUNT_MANAGEMENT)

    def capabilities(self) -> Dict[str, bool]:
        return {
            "is_owner": self.is_owner,
            "is_admin_or_owner": self.is_admin_or_owner,
            "can_manage_members": self.can_manage_members,
            "can_manage_team": self.can_manage_team,
            "can_manage_billing": self.can_manage_billing,
            "can_manage_subaccounts": self.can_manage_subaccounts,
        }


# ---------------------------------------------------------
# Conditional rendering
# ---------------------------------------------------------
def permission_guard(view: RoleView, permission: PermissionLike, content: T, fallback: F = None) -> Union[T, F]:
    return content if view.can(permission) else fallback


def any_permission_guard(
    view: RoleView, permissions: Iterable[PermissionLike], content: T, fallback: F = None
) -> Union[T, F]:
    return content if view.can_any(permissions) else fallback


def all_permissions_guard(
    view: RoleView, permissions: Iterable[PermissionLike], content: T, fallback: F = None
) -> Union[T, F]:
    return content if view.can_all(permissions) else fallback


def role_guard(view: RoleView, roles: Iterable[RoleLike], content: T, fallback: F = None) -> Union[T, F]:
    if view.role is None:
        return fallback
    allowed = {coerce_role(r) for r in roles}
    return content if view.role in allowed else fallback


def manage_role_guard(view: RoleView, target_role: RoleLike, content: T, fallback: F = None) -> Union[T, F]:
    return content if view.can_manage(target_role) else fallback
