# backend/backoffice/crud/user.py
from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice.models.user import User


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    stmt = select(User).where(User.email == User.normalize_email(email))
    return (await db.execute(stmt)).scalar_one_or_none()
