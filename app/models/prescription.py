"""
Prescription request and chat models

A prescription request opens a chat between the patient (role `user`) and
the doctor. Chat messages are stored as an ordered JSON list:

    [
        {
            "id": "9b1d...",
            "sender_id": "<user id>",
            "sender_role": "doctor",
            "content": "Take this twice a day",
            "prescription": "Paracetamol 500mg",
            "timestamp": "2025-01-01T10:00:00+00:00"
        },
        ...
    ]
"""
import uuid
from typing import Optional, List
from datetime import datetime
from enum import Enum
from sqlmodel import Field, Column, JSON
from sqlalchemy.orm.attributes import flag_modified

from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse, utcnow


class PrescriptionStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


# ==================== Table models ====================

class PrescriptionRequest(TimestampMixin, IDMixin, table=True):
    """Prescription request table"""
    __tablename__ = "prescription_requests"

    user_id: str = Field(..., foreign_key="users.id", index=True)
    doctor_id: str = Field(..., foreign_key="users.id", index=True)
    health_issue: str = Field(..., max_length=500)
    symptoms: Optional[str] = None
    status: str = Field(PrescriptionStatus.PENDING.value, index=True)
    prescription: Optional[str] = None

    def __repr__(self) -> str:
        return f"<PrescriptionRequest(id={self.id}, status={self.status})>"


class Chat(TimestampMixin, IDMixin, table=True):
    """Chat table"""
    __tablename__ = "chats"

    prescription_request_id: Optional[str] = Field(
        None, foreign_key="prescription_requests.id", index=True
    )
    user_id: str = Field(..., foreign_key="users.id", index=True)
    doctor_id: str = Field(..., foreign_key="users.id", index=True)
    messages: List[dict] = Field(default_factory=list, sa_column=Column(JSON))
    is_active: bool = Field(default=True)
    last_message_at: Optional[datetime] = Field(None, index=True)

    @property
    def message_count(self) -> int:
        return len(self.messages) if self.messages else 0

    def find_message(self, message_id: str) -> Optional[dict]:
        for message in self.messages or []:
            if message.get("id") == message_id:
                return message
        return None

    def add_message(
        self,
        sender_id: str,
        sender_role: str,
        content: str,
        prescription: Optional[str] = None
    ) -> dict:
        """Append a message and mark the JSON column dirty"""
        now = utcnow()
        message = {
            "id": str(uuid.uuid4()),
            "sender_id": sender_id,
            "sender_role": sender_role,
            "content": content,
            "prescription": prescription,
            "timestamp": now.isoformat(),
        }
        self.messages = list(self.messages or []) + [message]
        self.last_message_at = now
        flag_modified(self, "messages")
        return message

    def remove_message(self, message_id: str) -> bool:
        remaining = [m for m in self.messages or [] if m.get("id") != message_id]
        if len(remaining) == len(self.messages or []):
            return False
        self.messages = remaining
        flag_modified(self, "messages")
        return True

    def __repr__(self) -> str:
        return f"<Chat(id={self.id}, messages={self.message_count})>"


# ==================== Request schemas ====================

class PrescriptionRequestCreate(SQLModelBase):
    doctor_id: str
    health_issue: str = Field(..., min_length=1, max_length=500)
    symptoms: Optional[str] = None


class ChatMessageCreate(SQLModelBase):
    content: str = Field(..., min_length=1)
    prescription: Optional[str] = None


# ==================== Response schemas ====================

class PrescriptionRequestResponse(TimestampResponse):
    user_id: str
    doctor_id: str
    health_issue: str
    symptoms: Optional[str]
    status: str
    prescription: Optional[str]


class ChatResponse(TimestampResponse):
    prescription_request_id: Optional[str]
    user_id: str
    doctor_id: str
    messages: List[dict]
    is_active: bool
    last_message_at: Optional[datetime]

    # related info
    user_name: Optional[str] = None
    doctor_name: Optional[str] = None
    health_issue: Optional[str] = None
