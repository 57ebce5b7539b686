"""
Patient registration CRUD
"""
from typing import Optional, List
from sqlalchemy import select, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.patient import PatientRegistration
from .base import CRUDBase, contains_ci


class CRUDPatientRegistration(CRUDBase[PatientRegistration]):
    """Patient registration CRUD"""

    async def get_by_invoice(self, db: AsyncSession, invoice_number: str) -> Optional[PatientRegistration]:
        result = await db.execute(
            select(self.model).where(self.model.invoice_number == invoice_number)
        )
        return result.scalar_one_or_none()

    async def get_by_emr(self, db: AsyncSession, emr_number: str) -> List[PatientRegistration]:
        """All registrations sharing an EMR number, newest first"""
        result = await db.execute(
            select(self.model)
            .where(self.model.emr_number == emr_number)
            .order_by(self.model.created_at.desc())
        )
        return list(result.scalars().all())

    async def search(
        self,
        db: AsyncSession,
        *,
        emr_number: Optional[str] = None,
        invoice_number: Optional[str] = None,
        name: Optional[str] = None,
        phone: Optional[str] = None,
        claim_status: Optional[str] = None,
        status: Optional[str] = None,
        limit: int = 50
    ) -> List[PatientRegistration]:
        """Case-insensitive partial match on the text filters, exact on statuses"""
        query = select(self.model)
        if emr_number:
            query = query.where(contains_ci(self.model.emr_number, emr_number))
        if invoice_number:
            query = query.where(contains_ci(self.model.invoice_number, invoice_number))
        if phone:
            query = query.where(contains_ci(self.model.mobile_number, phone))
        if name:
            query = query.where(or_(
                contains_ci(self.model.first_name, name),
                contains_ci(self.model.last_name, name),
            ))
        if claim_status:
            query = query.where(self.model.advance_claim_status == claim_status)
        if status:
            query = query.where(self.model.status == status)

        result = await db.execute(
            query.order_by(self.model.created_at.desc()).limit(limit)
        )
        return list(result.scalars().all())


patient_crud = CRUDPatientRegistration(PatientRegistration)
