"""
Notification CRUD
"""
from typing import List, Sequence
from sqlalchemy import select, update, delete, or_
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.job_application import JobApplication
from app.models.notification import Notification
from .base import CRUDBase


class CRUDNotification(CRUDBase[Notification]):
    """Notification CRUD"""

    async def get_by_user(
        self,
        db: AsyncSession,
        user_id: str,
        *,
        unread_only: bool = False,
        limit: int = 100
    ) -> List[Notification]:
        query = select(self.model).where(self.model.user_id == user_id)
        if unread_only:
            query = query.where(self.model.is_read == False)  # noqa: E712
        result = await db.execute(
            query.order_by(self.model.created_at.desc()).limit(limit)
        )
        return list(result.scalars().all())

    async def mark_read(self, db: AsyncSession, user_id: str, ids: Sequence[str]) -> int:
        """Mark the caller's own notifications read; other ids are ignored"""
        if not ids:
            return 0
        result = await db.execute(
            update(self.model)
            .where(self.model.user_id == user_id, self.model.id.in_(list(ids)))
            .values(is_read=True)
        )
        return result.rowcount or 0

    async def get_undelivered(
        self,
        db: AsyncSession,
        *,
        max_attempts: int,
        limit: int = 200
    ) -> List[Notification]:
        """Outbox entries still waiting for a push"""
        result = await db.execute(
            select(self.model)
            .where(
                self.model.delivered_at.is_(None),
                self.model.delivery_attempts < max_attempts,
            )
            .order_by(self.model.created_at)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def delete_for_applications(
        self,
        db: AsyncSession,
        application_ids: Sequence[str]
    ) -> int:
        if not application_ids:
            return 0
        result = await db.execute(
            delete(self.model).where(
                self.model.related_application_id.in_(list(application_ids))
            )
        )
        return result.rowcount or 0

    async def delete_for_job(self, db: AsyncSession, job_id: str) -> int:
        """Notifications about the job itself or any of its applications"""
        application_ids = select(JobApplication.id).where(JobApplication.job_id == job_id)
        result = await db.execute(
            delete(self.model).where(
                or_(
                    self.model.related_job_id == job_id,
                    self.model.related_application_id.in_(application_ids),
                )
            )
        )
        return result.rowcount or 0


notification_crud = CRUDNotification(Notification)
