from __future__ import annotations

import functools
import uuid
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, List, Mapping, Optional, Tuple

from backoffice.auth.context import AuthorizationContext, ContextResolver
from backoffice.auth.errors import BadRequest, InsufficientPermissions
from backoffice.auth.permissions import (
    Permission,
    PermissionLike,
    RoleLike,
    coerce_permission,
    coerce_role,
    has_all_permissions,
    has_any_permission,
    has_permission,
)
from backoffice.core.roles import Role

Handler = Callable[[Any, AuthorizationContext, Mapping[str, Any]], Awaitable[Any]]
GuardedHandler = Callable[[Any, Mapping[str, Any]], Awaitable[Any]]

TEAM_ID_PARAM = "team_id"


# ---------------------------------------------------------
# Requirements
# ---------------------------------------------------------
class Requirement:
    def is_satisfied_by(self, role: Role) -> bool:
        raise NotImplementedError

    def required(self) -> List[str]:
        raise NotImplementedError


@dataclass(frozen=True)
class PermissionRequirement(Requirement):
    permission: Permission

    def __post_init__(self) -> None:
        object.__setattr__(self, "permission", coerce_permission(self.permission))

    def is_satisfied_by(self, role: Role) -> bool:
        return has_permission(role, self.permission)

    def required(self) -> List[str]:
        return [self.permission.value]


@dataclass(frozen=True)
class AnyPermissionRequirement(Requirement):
    permissions: Tuple[Permission, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "permissions", tuple(coerce_permission(p) for p in self.permissions))

    def is_satisfied_by(self, role: Role) -> bool:
        return has_any_permission(role, self.permissions)

    def required(self) -> List[str]:
        return [p.value for p in self.permissions]


@dataclass(frozen=True)
class AllPermissionsRequirement(Requirement):
    permissions: Tuple[Permission, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "permissions", tuple(coerce_permission(p) for p in self.permissions))

    def is_satisfied_by(self, role: Role) -> bool:
        return has_all_permissions(role, self.permissions)

    def required(self) -> List[str]:
        return [p.value for p in self.permissions]


@dataclass(frozen=True)
class RoleRequirement(Requirement):
    """
    Literal role allowlist. Skips the permission table on purpose: used when
    the rule is about who someone is ("only owners"), not what they can do.
    """

    roles: Tuple[Role, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "roles", tuple(coerce_role(r) for r in self.roles))

    def is_satisfied_by(self, role: Role) -> bool:
        return role in self.roles

    def required(self) -> List[str]:
        return [r.value for r in self.roles]


# ---------------------------------------------------------
# Team id
# ---------------------------------------------------------
def team_id_from_params(params: Optional[Mapping[str, Any]]) -> uuid.UUID:
    raw = (params or {}).get(TEAM_ID_PARAM)
    if isinstance(raw, uuid.UUID):
        return raw

    raw = (str(raw) if raw is not None else "").strip()
    if not raw:
        raise BadRequest()

    try:
        return uuid.UUID(raw)
    except ValueError:
        raise BadRequest("Team ID must be a valid UUID.", code="team_id_invalid") from None


# ---------------------------------------------------------
# Gate
# ---------------------------------------------------------
class AuthorizationGate:
    """
    Single enforcement point for team-scoped operations.

    `authorize()` returns the AuthorizationContext or raises; the `with_*`
    decorators wrap `handler(request, context, params)` into
    `wrapped(request, params)` which calls the handler at most once.
    """

    def __init__(self, resolver: ContextResolver) -> None:
        self.resolver = resolver

    async def authorize(
        self,
        request: Any,
        params: Optional[Mapping[str, Any]],
        requirement: Requirement,
    ) -> AuthorizationContext:
        # validated before any store is touched
        team_id = team_id_from_params(params)

        context = await self.resolver.resolve(request, team_id)

        if not requirement.is_satisfied_by(context.effective_role):
            raise InsufficientPermissions(
                required=requirement.required(),
                role=context.effective_role.value,
            )
        return context

    async def team_ownership(
        self,
        request: Any,
        params: Optional[Mapping[str, Any]],
    ) -> Tuple[bool, AuthorizationContext]:
        """
        Resolves the context without a requirement and reports ownership,
        for flows that branch on it instead of denying.
        """
        context = await self.resolver.resolve(request, team_id_from_params(params))
        return context.is_owner, context

    def guard(self, requirement: Requirement) -> Callable[[Handler], GuardedHandler]:
        def decorator(handler: Handler) -> GuardedHandler:
            @functools.wraps(handler)
            async def wrapped(request: Any, params: Optional[Mapping[str, Any]] = None) -> Any:
                params = dict(params or {})
                context = await self.authorize(request, params, requirement)
                return await handler(request, context, params)

            return wrapped

        return decorator

    def with_permission(self, permission: PermissionLike) -> Callable[[Handler], GuardedHandler]:
        return self.guard(PermissionRequirement(permission))

    def with_any_permission(self, permissions: Iterable[PermissionLike]) -> Callable[[Handler], GuardedHandler]:
        return self.guard(AnyPermissionRequirement(tuple(permissions)))

    def with_all_permissions(self, permissions: Iterable[PermissionLike]) -> Callable[[Handler], GuardedHandler]:
        return self.guard(AllPermissionsRequirement(tuple(permissions)))

    def with_role(self, roles: Iterable[RoleLike]) -> Callable[[Handler], GuardedHandler]:
        return self.guard(RoleRequirement(tuple(roles)))
