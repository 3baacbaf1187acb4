"""
shiptrack.db.repositories.users

Repository for `User` entities.

Responsibilities:
- Lookups by id / normalized email / normalized username.
- Collision checks across username and email in a single query.
- Insert, partial update, delete and counts.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from shiptrack.db.models import User, UserRole


class UserRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, user_id: int) -> User | None:
        return await self._session.get(User, user_id)

    async def get_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == email)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def get_by_username(self, username: str) -> User | None:
        stmt = select(User).where(User.username == username)
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def find_conflicts(
        self,
        *,
        username: str | None = None,
        email: str | None = None,
        exclude_id: int | None = None,
    ) -> list[User]:
        # One round trip covering both unique fields; callers decide which collision to report.
        clauses = []
        if username is not None:
            clauses.append(User.username == username)
        if email is not None:
            clauses.append(User.email == email)
        if not clauses:
            return []
        stmt = select(User).where(or_(*clauses))
        if exclude_id is not None:
            stmt = stmt.where(User.id != exclude_id)
        return list((await self._session.execute(stmt)).scalars().all())

    async def list_all(self, *, role: UserRole | None = None) -> list[User]:
        stmt = select(User).order_by(User.id)
        if role is not None:
            stmt = stmt.where(User.role == role)
        return list((await self._session.execute(stmt)).scalars().all())

    async def count(self, *, role: UserRole | None = None, exclude_id: int | None = None) -> int:
        stmt = select(func.count()).select_from(User)
        if role is not None:
            stmt = stmt.where(User.role == role)
        if exclude_id is not None:
            stmt = stmt.where(User.id != exclude_id)
        return int((await self._session.execute(stmt)).scalar_one())

    async def create(
        self,
        *,
        username: str,
        email: str,
        password_hash: str,
        role: UserRole,
        scopes: list[str],
    ) -> User:
        user = User(
            username=username,
            email=email,
            password_hash=password_hash,
            role=role,
            scopes=scopes,
        )
        self._session.add(user)
        await self._session.flush()
        return user

    async def update(self, user_id: int, values: dict[str, Any]) -> User | None:
        user = await self._session.get(User, user_id, with_for_update=True)
        if user is None:
            return None
        for key, value in values.items():
            setattr(user, key, value)
        user.updated_at = datetime.utcnow()
        await self._session.flush()
        return user

    async def delete(self, user_id: int) -> bool:
        result = await self._session.execute(delete(User).where(User.id == user_id))
        return (result.rowcount or 0) > 0


# --- Module Notes -----------------------------------------------------------
# Inputs are expected to be normalized already (see `services.user_service`).
