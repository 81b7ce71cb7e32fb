from __future__ import annotations

import enum
from types import MappingProxyType
from typing import FrozenSet, Iterable, Mapping, Union

from backoffice.core.roles import Role


class Permission(str, enum.Enum):
    # team:*
    TEAM_READ = "team:read"
    TEAM_UPDATE = "team:update"
    TEAM_DELETE = "team:delete"
    TEAM_MANAGE_BILLING = "team:manage_billing"

    # members:*
    MEMBERS_READ = "members:read"
    MEMBERS_INVITE = "members:invite"
    MEMBERS_UPDATE_ROLE = "members:update_role"
    MEMBERS_REMOVE = "members:remove"

    # subaccounts:*
    SUBACCOUNTS_READ = "subaccounts:read"
    SUBACCOUNTS_CREATE = "subaccounts:create"
    SUBACCOUNTS_UPDATE = "subaccounts:update"
    SUBACCOUNTS_DELETE = "subaccounts:delete"

    # settings:*
    SETTINGS_READ = "settings:read"
    SETTINGS_UPDATE = "settings:update"

    # analytics / reports
    ANALYTICS_READ = "analytics:read"
    REPORTS_READ = "reports:read"
    REPORTS_EXPORT = "reports:export"


RoleLike = Union[Role, str]
PermissionLike = Union[Permission, str]


_OWNER_PERMISSIONS: FrozenSet[Permission] = frozenset(Permission)

_ADMIN_PERMISSIONS: FrozenSet[Permission] = _OWNER_PERMISSIONS - {
    Permission.TEAM_DELETE,
    Permission.TEAM_MANAGE_BILLING,
}

_MEMBER_PERMISSIONS: FrozenSet[Permission] = frozenset(
    {
        Permission.TEAM_READ,
        Permission.MEMBERS_READ,
        Permission.SUBACCOUNTS_READ,
        Permission.SUBACCOUNTS_CREATE,
        Permission.SUBACCOUNTS_UPDATE,
        Permission.SETTINGS_READ,
        Permission.ANALYTICS_READ,
        Permission.REPORTS_READ,
    }
)

_VIEWER_PERMISSIONS: FrozenSet[Permission] = frozenset(
    {
        Permission.TEAM_READ,
        Permission.MEMBERS_READ,
        Permission.SUBACCOUNTS_READ,
        Permission.SETTINGS_READ,
        Permission.ANALYTICS_READ,
        Permission.REPORTS_READ,
    }
)

# super_admin is owner plus the global membership bypass; it shares owner's set
# so the two cannot drift apart.
ROLE_PERMISSIONS: Mapping[Role, FrozenSet[Permission]] = MappingProxyType(
    {
        Role.SUPER_ADMIN: _OWNER_PERMISSIONS,
        Role.OWNER: _OWNER_PERMISSIONS,
        Role.ADMIN: _ADMIN_PERMISSIONS,
        Role.MEMBER: _MEMBER_PERMISSIONS,
        Role.VIEWER: _VIEWER_PERMISSIONS,
    }
)


def coerce_role(value: RoleLike) -> Role:
    """
    Accepts a Role or its string value ("owner"). Unknown values raise ValueError
    so a typo never degrades into a silent "no permissions".
    """
    if isinstance(value, Role):
        return value
    try:
        return Role((value or "").strip().lower())
    except (ValueError, AttributeError):
        raise ValueError(f"Unknown role: {value!r}") from None


def coerce_permission(value: PermissionLike) -> Permission:
    if isinstance(value, Permission):
        return value
    try:
        return Permission((value or "").strip())
    except (ValueError, AttributeError):
        raise ValueError(f"Unknown permission: {value!r}") from None


def get_role_permissions(role: RoleLike) -> FrozenSet[Permission]:
    return ROLE_PERMISSIONS[coerce_role(role)]


def has_permission(role: RoleLike, permission: PermissionLike) -> bool:
    return coerce_permission(permission) in get_role_permissions(role)


def has_any_permission(role: RoleLike, permissions: Iterable[PermissionLike]) -> bool:
    """
    True if at least one of `permissions` is granted. An empty list is False.
    """
    grants = get_role_permissions(role)
    return any(coerce_permission(p) in grants for p in permissions)


def has_all_permissions(role: RoleLike, permissions: Iterable[PermissionLike]) -> bool:
    """
    True if every one of `permissions` is granted. An empty list is vacuously True.
    """
    grants = get_role_permissions(role)
    return all(coerce_permission(p) in grants for p in permissions)
