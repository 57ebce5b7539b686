"""
Job application model

One application per (job, applicant) pair
"""
from typing import Optional
from enum import Enum
from sqlmodel import Field, Column, JSON, UniqueConstraint

from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse


class ApplicationStatus(str, Enum):
    """Application status"""
    APPLIED = "applied"
    SHORTLISTED = "shortlisted"
    INTERVIEW = "interview"
    ACCEPTED = "accepted"
    REJECTED = "rejected"


# ==================== Table model ====================

class JobApplication(TimestampMixin, IDMixin, table=True):
    """Job application table"""
    __tablename__ = "job_applications"
    __table_args__ = (
        UniqueConstraint("job_id", "applicant_id", name="uq_job_application_applicant"),
    )

    job_id: str = Field(..., foreign_key="job_postings.id", index=True)
    applicant_id: str = Field(..., foreign_key="users.id", index=True)
    applicant_info: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    resume: Optional[str] = Field(None, max_length=500)
    status: str = Field(ApplicationStatus.APPLIED.value, index=True)

    def __repr__(self) -> str:
        return f"<JobApplication(id={self.id}, status={self.status})>"


# ==================== Request schemas ====================

class JobApplicationCreate(SQLModelBase):
    """Apply to a job; the applicant is the authenticated user"""
    applicant_info: Optional[dict] = None
    resume: Optional[str] = Field(None, max_length=500)


class ApplicationStatusUpdate(SQLModelBase):
    status: ApplicationStatus


# ==================== Response schemas ====================

class JobApplicationResponse(TimestampResponse):
    job_id: str
    applicant_id: str
    applicant_info: Optional[dict]
    resume: Optional[str]
    status: str

    # related info
    job_title: Optional[str] = None
    resume_url: Optional[str] = None
