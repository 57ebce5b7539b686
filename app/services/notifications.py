"""
Notification writes

A queued notification only becomes visible to the outbox dispatcher once
the caller's transaction commits.
"""
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.notification import Notification, NotificationType


def queue_notification(
    db: AsyncSession,
    *,
    user_id: str,
    message: str,
    type: NotificationType = NotificationType.GENERAL,
    related_job_id: Optional[str] = None,
    related_application_id: Optional[str] = None,
) -> Notification:
    """Add a notification row to the current transaction"""
    notification = Notification(
        user_id=user_id,
        message=message[:500],
        type=NotificationType(type).value,
        related_job_id=related_job_id,
        related_application_id=related_application_id,
    )
    db.add(notification)
    return notification
