"""
Application retention sweep

Phases, each committed on its own:

    rejected     delete rejected applications older than the rejected
                 retention window (180 days)
    stale_jobs   find inactive postings untouched for the stale window
                 (60 days)
    stale_apps   delete applications of those postings older than the
                 stale window

A failing phase is logged and rolled back; independent phases still run.
Running the sweep again right away deletes nothing.
"""
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import List, Optional

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import Settings, settings as default_settings
from app.crud import job_application_crud, job_posting_crud
from app.models.base import utcnow


@dataclass
class CleanupReport:
    rejected_deleted: int = 0
    stale_jobs: int = 0
    stale_applications_deleted: int = 0
    failed_phases: List[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed_phases

    @property
    def total_deleted(self) -> int:
        return self.rejected_deleted + self.stale_applications_deleted


async def run_cleanup(
    db: AsyncSession,
    *,
    now: Optional[datetime] = None,
    settings: Settings = default_settings,
) -> CleanupReport:
    now = now or utcnow()
    rejected_cutoff = now - timedelta(days=settings.rejected_retention_days)
    stale_cutoff = now - timedelta(days=settings.stale_job_days)
    report = CleanupReport()

    try:
        report.rejected_deleted = await job_application_crud.delete_rejected_before(
            db, rejected_cutoff
        )
        await db.commit()
        logger.info(f"Cleanup: rejected applications deleted: {report.rejected_deleted}")
    except Exception as e:
        await db.rollback()
        report.failed_phases.append("rejected")
        logger.exception(f"Cleanup phase 'rejected' failed: {e}")

    try:
        stale_job_ids = await job_posting_crud.get_stale_ids(db, updated_before=stale_cutoff)
        report.stale_jobs = len(stale_job_ids)
        logger.info(f"Cleanup: stale inactive jobs found: {report.stale_jobs}")
    except Exception as e:
        await db.rollback()
        report.failed_phases.append("stale_jobs")
        logger.exception(f"Cleanup phase 'stale_jobs' failed: {e}")
        return report

    try:
        report.stale_applications_deleted = await job_application_crud.delete_for_jobs_before(
            db, stale_job_ids, stale_cutoff
        )
        await db.commit()
        logger.info(
            f"Cleanup: stale job applications deleted: {report.stale_applications_deleted}"
        )
    except Exception as e:
        await db.rollback()
        report.failed_phases.append("stale_apps")
        logger.exception(f"Cleanup phase 'stale_apps' failed: {e}")

    return report
