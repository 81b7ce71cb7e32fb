from __future__ import annotations

from typing import Any, Callable, Dict

from fastapi import Depends, Request

from backoffice.auth.context import AuthorizationContext
from backoffice.auth.gate import (
    TEAM_ID_PARAM,
    AllPermissionsRequirement,
    AnyPermissionRequirement,
    AuthorizationGate,
    PermissionRequirement,
    Requirement,
    RoleRequirement,
)
from backoffice.auth.permissions import PermissionLike, RoleLike
from backoffice.api.deps.auth import get_gate
from backoffice.core.config import settings


def team_params(request: Request) -> Dict[str, Any]:
    """
    Route params plus the team id: path `{team_id}` first, then the team header.
    """
    params: Dict[str, Any] = dict(request.path_params)
    if not params.get(TEAM_ID_PARAM):
        header_value = request.headers.get(settings.TEAM_ID_HEADER)
        if header_value:
            params[TEAM_ID_PARAM] = header_value
    return params


def _requirement_dependency(requirement: Requirement) -> Callable:
    async def _checker(
        request: Request,
        gate: AuthorizationGate = Depends(get_gate),
    ) -> AuthorizationContext:
        return await gate.authorize(request, team_params(request), requirement)

    return _checker


def require_permission(permission: PermissionLike) -> Callable:
    return _requirement_dependency(PermissionRequirement(permission))


def require_any_permission(*permissions: PermissionLike) -> Callable:
    return _requirement_dependency(AnyPermissionRequirement(permissions))


def require_all_permissions(*permissions: PermissionLike) -> Callable:
    return _requirement_dependency(AllPermissionsRequirement(permissions))


def require_team_roles(*allowed_roles: RoleLike) -> Callable:
    """
    Enforce context.effective_role is literally one of allowed_roles.
    Unknown role names fail at import time.
    """
    return _requirement_dependency(RoleRequirement(allowed_roles))


async def get_team_context(
    request: Request,
    gate: AuthorizationGate = Depends(get_gate),
) -> AuthorizationContext:
    """
    Any member of the team (or a super_admin); no capability required.
    """
    _is_owner, context = await gate.team_ownership(request, team_params(request))
    return context
