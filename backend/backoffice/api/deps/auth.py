from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.auth.context import ContextResolver
from backoffice.auth.gate import AuthorizationGate
from backoffice.crud.identity import BearerTokenIdentity, SqlMembershipStore, SqlProfileStore
from backoffice.db.session import get_db


async def get_context_resolver(db: AsyncSession = Depends(get_db)) -> ContextResolver:
    """
    One resolver per request, bound to the request's session.
    """
    return ContextResolver(
        identity=BearerTokenIdentity(db),
        profiles=SqlProfileStore(db),
        memberships=SqlMembershipStore(db),
    )


async def get_gate(resolver: ContextResolver = Depends(get_context_resolver)) -> AuthorizationGate:
    return AuthorizationGate(resolver)
