"""
Job application CRUD
"""
from datetime import datetime
from typing import List, Sequence, Tuple
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.job_application import JobApplication, ApplicationStatus
from app.models.job_posting import JobPosting
from .base import CRUDBase


class CRUDJobApplication(CRUDBase[JobApplication]):
    """Job application CRUD"""

    async def exists(
        self,
        db: AsyncSession,
        job_id: str,
        applicant_id: str
    ) -> bool:
        """Has this applicant already applied to the job"""
        result = await db.execute(
            select(self.model.id).where(
                self.model.job_id == job_id,
                self.model.applicant_id == applicant_id,
            )
        )
        return result.first() is not None

    async def delete_by_job(self, db: AsyncSession, job_id: str) -> int:
        """Every application of the job, including ones committed mid-request"""
        result = await db.execute(
            delete(self.model).where(self.model.job_id == job_id)
        )
        return result.rowcount or 0

    async def get_for_jobs_with_title(
        self,
        db: AsyncSession,
        job_ids: Sequence[str]
    ) -> List[Tuple[JobApplication, str]]:
        """Applications for the given jobs, paired with the job title"""
        if not job_ids:
            return []
        result = await db.execute(
            select(self.model, JobPosting.title)
            .join(JobPosting, JobPosting.id == self.model.job_id)
            .where(self.model.job_id.in_(list(job_ids)))
            .order_by(self.model.created_at.desc())
        )
        return [(row[0], row[1]) for row in result.all()]

    async def get_by_applicant_with_title(
        self,
        db: AsyncSession,
        applicant_id: str
    ) -> List[Tuple[JobApplication, str]]:
        result = await db.execute(
            select(self.model, JobPosting.title)
            .join(JobPosting, JobPosting.id == self.model.job_id)
            .where(self.model.applicant_id == applicant_id)
            .order_by(self.model.created_at.desc())
        )
        return [(row[0], row[1]) for row in result.all()]

    async def delete_rejected_before(self, db: AsyncSession, cutoff: datetime) -> int:
        """Rejected applications created before `cutoff`"""
        result = await db.execute(
            delete(self.model).where(
                self.model.status == ApplicationStatus.REJECTED.value,
                self.model.created_at < cutoff,
            )
        )
        return result.rowcount or 0

    async def delete_for_jobs_before(
        self,
        db: AsyncSession,
        job_ids: Sequence[str],
        cutoff: datetime
    ) -> int:
        """Applications of `job_ids` created before `cutoff`"""
        if not job_ids:
            return 0
        result = await db.execute(
            delete(self.model).where(
                self.model.job_id.in_(list(job_ids)),
                self.model.created_at < cutoff,
            )
        )
        return result.rowcount or 0


job_application_crud = CRUDJobApplication(JobApplication)
