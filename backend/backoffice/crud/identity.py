# backend/backoffice/crud/identity.py
"""
SQL-backed collaborators for the context resolver.
"""
from __future__ import annotations

import uuid
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.auth.context import Actor
from backoffice.core.security import decode_access_token
from backoffice.crud.team_member import get_membership
from backoffice.models.team_member import TeamMember
from backoffice.models.user import User


class BearerTokenIdentity:
    """
    Reads `Authorization: Bearer <jwt>` and loads the active user named by `sub`.
    """

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def authenticate(self, request: Any) -> Optional[Actor]:
        header = request.headers.get("Authorization")
        user_id = decode_access_token(header)
        if not user_id:
            return None

        try:
            user_uuid = uuid.UUID(user_id)
        except ValueError:
            return None

        user = await self.db.get(User, user_uuid)
        if user is None or not user.is_active:
            return None

        return Actor(id=user.id, email=user.email)


class SqlProfileStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_global_role(self, actor_id: uuid.UUID) -> Optional[str]:
        user = await self.db.get(User, actor_id)
        if user is None:
            return None
        return user.global_role or None


class SqlMembershipStore:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def get_membership(self, actor_id: uuid.UUID, team_id: uuid.UUID) -> Optional[TeamMember]:
        return await get_membership(self.db, team_id=team_id, user_id=actor_id)
