"""
Treatment catalog CRUD
"""
from typing import Optional, List, Tuple
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.treatment import Treatment, DoctorTreatment, slugify
from .base import CRUDBase


class CRUDTreatment(CRUDBase[Treatment]):
    """Treatment CRUD"""

    async def get_by_name(self, db: AsyncSession, name: str) -> Optional[Treatment]:
        result = await db.execute(select(self.model).where(self.model.name == name))
        return result.scalar_one_or_none()

    async def slug_exists(self, db: AsyncSession, slug: str) -> bool:
        result = await db.execute(select(self.model.id).where(self.model.slug == slug))
        return result.first() is not None

    async def unique_slug(self, db: AsyncSession, name: str) -> str:
        """`slugify(name)`, suffixed with -1, -2, ... until unused"""
        base_slug = slugify(name)
        slug = base_slug
        counter = 1
        while await self.slug_exists(db, slug):
            slug = f"{base_slug}-{counter}"
            counter += 1
        return slug

    async def get_all(self, db: AsyncSession) -> List[Treatment]:
        result = await db.execute(select(self.model).order_by(self.model.name))
        return list(result.scalars().all())


class CRUDDoctorTreatment(CRUDBase[DoctorTreatment]):
    """Doctor treatment CRUD"""

    async def get_for_doctor(
        self,
        db: AsyncSession,
        doctor_id: str
    ) -> List[Tuple[DoctorTreatment, Optional[Treatment]]]:
        """Doctor treatments paired with their catalog entry"""
        result = await db.execute(
            select(self.model, Treatment)
            .outerjoin(Treatment, Treatment.id == self.model.treatment_id)
            .where(self.model.doctor_id == doctor_id)
            .order_by(self.model.created_at.desc())
        )
        return [(row[0], row[1]) for row in result.all()]

    async def get_pair(self, db: AsyncSession, doctor_id: str, treatment_id: str) -> Optional[DoctorTreatment]:
        result = await db.execute(
            select(self.model).where(
                self.model.doctor_id == doctor_id,
                self.model.treatment_id == treatment_id,
            )
        )
        return result.scalar_one_or_none()

    async def delete_for_treatment(self, db: AsyncSession, treatment_id: str) -> int:
        result = await db.execute(
            delete(self.model).where(self.model.treatment_id == treatment_id)
        )
        return result.rowcount or 0


treatment_crud = CRUDTreatment(Treatment)
doctor_treatment_crud = CRUDDoctorTreatment(DoctorTreatment)
