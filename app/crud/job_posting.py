"""
Job posting CRUD
"""
from datetime import datetime
from typing import Optional, List
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.job_posting import JobPosting, JobStatus
from .base import CRUDBase, contains_ci


class CRUDJobPosting(CRUDBase[JobPosting]):
    """Job posting CRUD"""

    async def get_by_owner(self, db: AsyncSession, owner_id: str) -> List[JobPosting]:
        result = await db.execute(
            select(self.model)
            .where(self.model.posted_by == owner_id)
            .order_by(self.model.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_ids_by_owner(self, db: AsyncSession, owner_id: str) -> List[str]:
        result = await db.execute(
            select(self.model.id).where(self.model.posted_by == owner_id)
        )
        return list(result.scalars().all())

    async def get_by_status(self, db: AsyncSession, status: str) -> List[JobPosting]:
        result = await db.execute(
            select(self.model)
            .where(self.model.status == status)
            .order_by(self.model.created_at.desc())
        )
        return list(result.scalars().all())

    async def search_public(
        self,
        db: AsyncSession,
        *,
        location: Optional[str] = None,
        job_type: Optional[str] = None,
        department: Optional[str] = None,
        salary: Optional[str] = None,
        job_id: Optional[str] = None,
        skills: Optional[List[str]] = None,
        posted_since: Optional[datetime] = None,
    ) -> List[JobPosting]:
        """
        Approved and active postings matching the filters

        Text filters are case-insensitive partial matches, salary is exact.
        A posting matches `skills` when any of its skills contains any of
        the requested ones.
        """
        query = select(self.model).where(
            self.model.is_active == True,  # noqa: E712
            self.model.status == JobStatus.APPROVED.value,
        )
        if location:
            query = query.where(contains_ci(self.model.location, location))
        if job_type:
            query = query.where(contains_ci(self.model.job_type, job_type))
        if department:
            query = query.where(contains_ci(self.model.department, department))
        if salary:
            query = query.where(self.model.salary == salary.strip())
        if job_id:
            query = query.where(self.model.id == job_id.strip())
        if posted_since is not None:
            query = query.where(self.model.created_at >= posted_since)

        result = await db.execute(query.order_by(self.model.created_at.desc()))
        jobs = list(result.scalars().all())

        if skills:
            wanted = [s.lower() for s in skills]
            jobs = [
                job for job in jobs
                if any(w in (skill or "").lower() for skill in job.skills or [] for w in wanted)
            ]
        return jobs

    async def get_stale_ids(self, db: AsyncSession, *, updated_before: datetime) -> List[str]:
        """Inactive postings not touched since `updated_before`"""
        result = await db.execute(
            select(self.model.id).where(
                self.model.is_active == False,  # noqa: E712
                self.model.updated_at < updated_before,
            )
        )
        return list(result.scalars().all())

    async def delete_one(self, db: AsyncSession, id: str) -> int:
        result = await db.execute(delete(self.model).where(self.model.id == id))
        return result.rowcount or 0


job_posting_crud = CRUDJobPosting(JobPosting)
