"""
Treatment catalog models

`Treatment` is the shared catalog (slug identity, priced subcategories);
`DoctorTreatment` is the subset a doctor offers, with an optional price
override.
"""
import re
import time
from typing import Optional, List
from sqlmodel import Field, Column, JSON, UniqueConstraint

from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse


def slugify(value: str) -> str:
    """Lowercase, dash separated slug; falls back to a time based one"""
    slug = re.sub(r"[^a-z0-9]+", "-", str(value or "").strip().lower())
    slug = re.sub(r"-{2,}", "-", slug).strip("-")
    return slug or f"treatment-{int(time.time() * 1000)}"


# ==================== Table models ====================

class Treatment(TimestampMixin, IDMixin, table=True):
    """Treatment catalog table"""
    __tablename__ = "treatments"

    name: str = Field(..., max_length=150, unique=True)
    slug: str = Field(..., max_length=180, unique=True, index=True)
    subcategories: List[dict] = Field(default_factory=list, sa_column=Column(JSON))

    def __repr__(self) -> str:
        return f"<Treatment(id={self.id}, slug={self.slug})>"


class DoctorTreatment(TimestampMixin, IDMixin, table=True):
    """Treatments offered by one doctor"""
    __tablename__ = "doctor_treatments"
    __table_args__ = (
        UniqueConstraint("doctor_id", "treatment_id", name="uq_doctor_treatment"),
    )

    doctor_id: str = Field(..., foreign_key="users.id", index=True)
    treatment_id: str = Field(..., foreign_key="treatments.id", index=True)
    subcategory_ids: List[str] = Field(default_factory=list, sa_column=Column(JSON))
    price: Optional[float] = None


# ==================== Request schemas ====================

class SubcategoryIn(SQLModelBase):
    name: str = Field(..., min_length=1, max_length=150)
    price: Optional[float] = Field(None, ge=0)


class TreatmentCreate(SQLModelBase):
    name: str = Field(..., min_length=1, max_length=150)
    subcategories: List[SubcategoryIn] = Field(default_factory=list)


class DoctorTreatmentCreate(SQLModelBase):
    treatment_id: str
    subcategory_ids: List[str] = Field(default_factory=list)
    price: Optional[float] = Field(None, ge=0)


# ==================== Response schemas ====================

class TreatmentResponse(TimestampResponse):
    name: str
    slug: str
    subcategories: List[dict]


class DoctorTreatmentResponse(SQLModelBase):
    """Doctor treatment merged with its catalog entry"""
    id: str
    treatment_id: str
    treatment_name: str
    subcategory_ids: List[str]
    subcategories: List[dict]
    price: Optional[float]
