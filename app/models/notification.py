"""
Notification model

A notification row is also the outbox entry for live delivery:
`delivered_at` stays empty until a connected client received it.
"""
from typing import Optional, List
from datetime import datetime
from enum import Enum
from sqlmodel import Field

from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse


class NotificationType(str, Enum):
    APPLICATION_STATUS = "application_status"
    JOB_STATUS = "job_status"
    CHAT_REPLY = "chat_reply"
    GENERAL = "general"


# ==================== Table model ====================

class Notification(TimestampMixin, IDMixin, table=True):
    """Notification table"""
    __tablename__ = "notifications"

    user_id: str = Field(..., foreign_key="users.id", index=True)
    message: str = Field(..., max_length=500)
    type: str = Field(NotificationType.GENERAL.value, max_length=30)
    related_job_id: Optional[str] = Field(None, index=True)
    related_application_id: Optional[str] = Field(None, index=True)
    is_read: bool = Field(default=False)

    # outbox bookkeeping
    delivered_at: Optional[datetime] = Field(None, index=True)
    delivery_attempts: int = Field(default=0)
    last_error: Optional[str] = Field(None, max_length=500)

    def to_push_payload(self) -> dict:
        return {
            "type": "new_notification",
            "notification": {
                "id": self.id,
                "message": self.message,
                "type": self.type,
                "related_job_id": self.related_job_id,
                "related_application_id": self.related_application_id,
                "is_read": self.is_read,
                "created_at": self.created_at.isoformat() if self.created_at else None,
            },
        }

    def __repr__(self) -> str:
        return f"<Notification(id={self.id}, user_id={self.user_id})>"


# ==================== Request schemas ====================

class MarkReadRequest(SQLModelBase):
    ids: List[str] = Field(default_factory=list)


# ==================== Response schemas ====================

class NotificationResponse(TimestampResponse):
    user_id: str
    message: str
    type: str
    related_job_id: Optional[str]
    related_application_id: Optional[str]
    is_read: bool
