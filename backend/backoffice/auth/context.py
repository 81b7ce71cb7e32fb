from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Awaitable, Optional, Protocol, TypeVar, Union

from backoffice.auth.errors import AuthorizationUnavailable, Forbidden, RBACError, Unauthenticated
from backoffice.auth.permissions import coerce_role
from backoffice.core.roles import Role

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass(frozen=True)
class Actor:
    id: uuid.UUID
    email: Optional[str] = None


class MembershipRecord(Protocol):
    role: str


class IdentityProvider(Protocol):
    async def authenticate(self, request: Any) -> Optional[Actor]:
        """Actor behind the request credential, or None if absent/invalid."""
        ...


class ProfileStore(Protocol):
    async def get_global_role(self, actor_id: uuid.UUID) -> Optional[Union[Role, str]]:
        ...


class MembershipStore(Protocol):
    async def get_membership(self, actor_id: uuid.UUID, team_id: uuid.UUID) -> Optional[MembershipRecord]:
        ...


@dataclass(frozen=True)
class AuthorizationContext:
    """
    Who is acting, on which team, with which role. Built per request and
    dropped with it. `membership` is None for the global super_admin override.
    """

    actor: Actor
    team_id: uuid.UUID
    effective_role: Role
    membership: Optional[Any] = None

    @property
    def is_global_override(self) -> bool:
        return self.membership is None and self.effective_role == Role.SUPER_ADMIN

    @property
    def is_owner(self) -> bool:
        return self.effective_role == Role.OWNER


class ContextResolver:
    """
    Resolves the caller's effective role for one team.

    Order matters: the global super_admin check runs before the membership
    lookup, so a super_admin without a row in the team is not refused.
    """

    def __init__(
        self,
        identity: IdentityProvider,
        profiles: ProfileStore,
        memberships: MembershipStore,
    ) -> None:
        self.identity = identity
        self.profiles = profiles
        self.memberships = memberships

    async def resolve(self, request: Any, team_id: uuid.UUID) -> AuthorizationContext:
        actor = await self._call(self.identity.authenticate(request), "identity lookup")
        if actor is None:
            raise Unauthenticated()

        global_role = await self._call(self.profiles.get_global_role(actor.id), "global role lookup")
        if global_role is not None and self._to_role(global_role, "global role") == Role.SUPER_ADMIN:
            return AuthorizationContext(
                actor=actor,
                team_id=team_id,
                effective_role=Role.SUPER_ADMIN,
                membership=None,
            )

        membership = await self._call(
            self.memberships.get_membership(actor.id, team_id),
            "membership lookup",
        )
        if membership is None:
            raise Forbidden()

        return AuthorizationContext(
            actor=actor,
            team_id=team_id,
            effective_role=self._to_role(membership.role, "membership role"),
            membership=membership,
        )

    @staticmethod
    async def _call(awaitable: Awaitable[T], what: str) -> T:
        try:
            return await awaitable
        except RBACError:
            raise
        except Exception as exc:
            logger.exception("RBAC %s failed", what)
            raise AuthorizationUnavailable(f"{what} failed") from exc

    @staticmethod
    def _to_role(value: Union[Role, str], what: str) -> Role:
        try:
            return coerce_role(value)
        except ValueError as exc:
            logger.error("RBAC %s has unknown value %r", what, value)
            raise AuthorizationUnavailable(f"unknown {what}: {value!r}") from exc
