"""
User CRUD
"""
from typing import Optional, List
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import User, UserCreate
from .base import CRUDBase


class CRUDUser(CRUDBase[User]):
    """User CRUD"""

    async def get_by_email_and_role(
        self,
        db: AsyncSession,
        email: str,
        role: str
    ) -> Optional[User]:
        result = await db.execute(
            select(self.model).where(self.model.email == email, self.model.role == role)
        )
        return result.scalar_one_or_none()

    async def get_by_role(
        self,
        db: AsyncSession,
        role: str,
        *,
        skip: int = 0,
        limit: int = 100
    ) -> List[User]:
        result = await db.execute(
            select(self.model)
            .where(self.model.role == role)
            .order_by(self.model.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def create_user(self, db: AsyncSession, *, obj_in: UserCreate) -> User:
        return await self.create(db, obj_in=obj_in.model_dump())


user_crud = CRUDUser(User)
