"""
Contract CRUD
"""
from typing import List
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.contract import Contract
from .base import CRUDBase


class CRUDContract(CRUDBase[Contract]):
    """Contract CRUD"""

    async def get_by_responsible(self, db: AsyncSession, user_id: str) -> List[Contract]:
        result = await db.execute(
            select(self.model)
            .where(self.model.responsible_person_id == user_id)
            .order_by(self.model.created_at.desc())
        )
        return list(result.scalars().all())


contract_crud = CRUDContract(Contract)
