"""
Prescription request and chat CRUD
"""
from typing import List
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.prescription import PrescriptionRequest, Chat
from .base import CRUDBase


class CRUDPrescription(CRUDBase[PrescriptionRequest]):
    """Prescription request CRUD"""

    async def get_for_participant(self, db: AsyncSession, user_id: str) -> List[PrescriptionRequest]:
        """Requests the user made or is the doctor of"""
        result = await db.execute(
            select(self.model)
            .where((self.model.user_id == user_id) | (self.model.doctor_id == user_id))
            .order_by(self.model.created_at.desc())
        )
        return list(result.scalars().all())


class CRUDChat(CRUDBase[Chat]):
    """Chat CRUD"""

    async def get_active_for_user(self, db: AsyncSession, user_id: str) -> List[Chat]:
        result = await db.execute(
            select(self.model)
            .where(self.model.user_id == user_id, self.model.is_active == True)  # noqa: E712
            .order_by(self.model.last_message_at.desc())
        )
        return list(result.scalars().all())

    async def get_active_for_doctor(self, db: AsyncSession, doctor_id: str) -> List[Chat]:
        result = await db.execute(
            select(self.model)
            .where(self.model.doctor_id == doctor_id, self.model.is_active == True)  # noqa: E712
            .order_by(self.model.last_message_at.desc())
        )
        return list(result.scalars().all())

    async def delete_by_prescription(self, db: AsyncSession, prescription_id: str) -> int:
        result = await db.execute(
            delete(self.model).where(self.model.prescription_request_id == prescription_id)
        )
        return result.rowcount or 0


prescription_crud = CRUDPrescription(PrescriptionRequest)
chat_crud = CRUDChat(Chat)
