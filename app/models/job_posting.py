"""
Job posting model - SQLModel version

Table model and request/response schemas in one place
"""
from typing import Optional, List
from enum import Enum
from sqlmodel import Field, Column, JSON

from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse


class JobStatus(str, Enum):
    """Moderation status of a posting"""
    PENDING = "pending"
    APPROVED = "approved"
    DECLINED = "declined"


class JobType(str, Enum):
    FULL_TIME = "Full Time"
    PART_TIME = "Part Time"
    INTERNSHIP = "Internship"


# ==================== Base fields ====================

class JobPostingBase(SQLModelBase):
    """Fields shared by create requests and the table"""
    title: str = Field(..., min_length=1, max_length=150, description="Job title")
    description: Optional[str] = Field(None, description="Job description")
    location: Optional[str] = Field(None, max_length=150)
    department: Optional[str] = Field(None, max_length=100)
    salary: Optional[str] = Field(None, max_length=50)
    company_name: Optional[str] = Field(None, max_length=150)
    qualification: Optional[str] = Field(None, max_length=50)
    job_type: Optional[JobType] = Field(None)
    working_days: str = Field("", max_length=100)
    job_timing: Optional[str] = Field(None, max_length=100)
    no_of_openings: int = Field(1, ge=1)
    establishment: Optional[str] = Field(None, max_length=150)


# ==================== Table model ====================

class JobPosting(TimestampMixin, IDMixin, table=True):
    """Job posting table"""
    __tablename__ = "job_postings"

    title: str = Field(..., max_length=150, index=True)
    description: Optional[str] = None
    location: Optional[str] = Field(None, max_length=150)
    department: Optional[str] = Field(None, max_length=100)
    salary: Optional[str] = Field(None, max_length=50)
    company_name: Optional[str] = Field(None, max_length=150)
    qualification: Optional[str] = Field(None, max_length=50)
    job_type: Optional[str] = Field(None, max_length=30)
    working_days: str = Field("", max_length=100)
    job_timing: Optional[str] = Field(None, max_length=100)
    no_of_openings: int = Field(1)
    establishment: Optional[str] = Field(None, max_length=150)

    skills: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    perks: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    languages_preferred: List[str] = Field(default_factory=list, sa_column=Column(JSON))

    posted_by: str = Field(..., foreign_key="users.id", index=True)
    role: str = Field(..., max_length=20, description="Role of the poster")
    status: str = Field(JobStatus.PENDING.value, index=True)
    is_active: bool = Field(default=True, index=True)

    def __repr__(self) -> str:
        return f"<JobPosting(id={self.id}, title={self.title})>"


# ==================== Request schemas ====================

class JobPostingCreate(JobPostingBase):
    """Create a posting; status and owner are set by the server"""
    skills: List[str] = Field(default_factory=list)
    perks: List[str] = Field(default_factory=list)
    languages_preferred: List[str] = Field(default_factory=list)


class JobToggleRequest(SQLModelBase):
    is_active: bool


class JobModerationRequest(SQLModelBase):
    status: JobStatus


# ==================== Response schemas ====================

class JobPostingResponse(TimestampResponse):
    title: str
    description: Optional[str]
    location: Optional[str]
    department: Optional[str]
    salary: Optional[str]
    company_name: Optional[str]
    qualification: Optional[str]
    job_type: Optional[str]
    working_days: str
    job_timing: Optional[str]
    no_of_openings: int
    establishment: Optional[str]
    skills: List[str]
    perks: List[str]
    languages_preferred: List[str]
    posted_by: str
    role: str
    status: str
    is_active: bool
