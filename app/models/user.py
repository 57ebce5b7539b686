"""
User model
"""
from typing import Optional
from enum import Enum
from sqlmodel import Field, UniqueConstraint

from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse


class UserRole(str, Enum):
    """User roles"""
    USER = "user"
    CLINIC = "clinic"
    ADMIN = "admin"
    DOCTOR = "doctor"
    DOCTOR_STAFF = "doctorStaff"
    STAFF = "staff"
    AGENT = "agent"
    LEAD = "lead"


class UserBase(SQLModelBase):
    name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=255)
    phone: Optional[str] = Field(None, max_length=30)
    role: UserRole = Field(UserRole.USER)


# ==================== Table model ====================

class User(TimestampMixin, IDMixin, table=True):
    """User table"""
    __tablename__ = "users"
    __table_args__ = (
        UniqueConstraint("email", "role", name="uq_user_email_role"),
    )

    name: str = Field(..., max_length=100)
    email: str = Field(..., max_length=255, index=True)
    phone: Optional[str] = Field(None, max_length=30)
    role: str = Field(UserRole.USER.value, index=True)
    is_approved: bool = Field(default=False)
    declined: bool = Field(default=False)

    @property
    def display_name(self) -> str:
        return self.name or self.email or self.id

    def __repr__(self) -> str:
        return f"<User(id={self.id}, role={self.role})>"


# ==================== Request schemas ====================

class UserCreate(UserBase):
    is_approved: bool = False


class ApprovalRequest(SQLModelBase):
    """Approve or decline an account"""
    approved: bool


# ==================== Response schemas ====================

class UserResponse(TimestampResponse):
    name: str
    email: str
    phone: Optional[str]
    role: str
    is_approved: bool
    declined: bool


class UserBrief(SQLModelBase):
    id: str
    name: str
    email: str
    role: str
