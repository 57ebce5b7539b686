"""
Patient registration model

A registration is an invoice for one visit plus the advance-claim
approval workflow:

    Pending Release --(doctor approves)--> Approved by doctor
    Pending Release --(staff releases)---> Released
    any             --(staff cancels)----> Cancelled
"""
from typing import Optional, List
from datetime import datetime
from enum import Enum
from sqlmodel import Field, Column, JSON

from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse, utcnow


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class PatientType(str, Enum):
    NEW = "New"
    OLD = "Old"


class ClaimStatus(str, Enum):
    """Advance claim status"""
    PENDING_RELEASE = "Pending Release"
    RELEASED = "Released"
    CANCELLED = "Cancelled"
    APPROVED_BY_DOCTOR = "Approved by doctor"


# Everything a doctorStaff must confirm before releasing a claim
CLAIM_RELEASE_CHECKLIST = (
    "appointment",
    "personalDetails",
    "treatment",
    "amount",
    "complains",
    "vitalSign",
    "consentForm",
    "allergy",
    "invoiceDate",
    "familyDetails",
    "diagnosis",
    "startDate",
)

# Fields the assigned doctor may edit
DOCTOR_EDITABLE_FIELDS = (
    "first_name",
    "last_name",
    "email",
    "mobile_number",
    "referred_by",
    "service",
    "treatment",
    "package",
    "notes",
)


# ==================== Table model ====================

class PatientRegistration(TimestampMixin, IDMixin, table=True):
    """Patient registration table"""
    __tablename__ = "patient_registrations"

    user_id: str = Field(..., foreign_key="users.id", index=True, description="Registered by")

    # Invoice
    invoice_number: str = Field(..., max_length=50, unique=True, index=True)
    invoiced_by: Optional[str] = Field(None, max_length=100)
    invoiced_date: datetime = Field(default_factory=utcnow)

    # Patient info
    emr_number: Optional[str] = Field(None, max_length=50, index=True)
    first_name: str = Field(..., max_length=100)
    last_name: Optional[str] = Field(None, max_length=100)
    email: Optional[str] = Field(None, max_length=255)
    mobile_number: str = Field(..., max_length=30)
    gender: str = Field(..., max_length=10)
    patient_type: Optional[str] = Field(None, max_length=10)
    referred_by: Optional[str] = Field(None, max_length=100)
    doctor: str = Field(..., max_length=100, index=True, description="Assigned doctor id or name")
    service: str = Field(..., max_length=100)
    treatment: Optional[str] = Field(None, max_length=150)
    package: Optional[str] = Field(None, max_length=150)
    notes: Optional[str] = None

    # Payment
    amount: float = Field(0, ge=0)
    paid: float = Field(0, ge=0)
    advance: float = Field(0, ge=0)
    pending: float = Field(0, ge=0)
    payment_method: Optional[str] = Field(None, max_length=30)
    payment_history: List[dict] = Field(default_factory=list, sa_column=Column(JSON))

    # Status
    status: Optional[str] = Field(None, max_length=30)
    rejection_note: Optional[str] = None

    # Insurance / advance claim
    insurance: str = Field("No", max_length=5)
    advance_given_amount: float = Field(0)
    co_pay_percent: float = Field(0)
    advance_claim_status: str = Field(ClaimStatus.PENDING_RELEASE.value, max_length=30, index=True)
    advance_claim_release_date: Optional[datetime] = None
    advance_claim_released_by: Optional[str] = Field(None, max_length=100)
    advance_claim_cancellation_remark: Optional[str] = None

    def __repr__(self) -> str:
        return f"<PatientRegistration(id={self.id}, invoice={self.invoice_number})>"


# ==================== Request schemas ====================

class PatientRegistrationCreate(SQLModelBase):
    invoice_number: str = Field(..., min_length=1, max_length=50)
    invoiced_by: Optional[str] = None
    emr_number: Optional[str] = None
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: Optional[str] = None
    email: Optional[str] = None
    mobile_number: str = Field(..., min_length=1, max_length=30)
    gender: Gender
    patient_type: Optional[PatientType] = None
    referred_by: Optional[str] = None
    doctor: str = Field(..., min_length=1, max_length=100)
    service: str = Field(..., min_length=1, max_length=100)
    treatment: Optional[str] = None
    package: Optional[str] = None
    amount: float = Field(..., gt=0)
    paid: float = Field(..., ge=0)
    advance: float = Field(0, ge=0)
    payment_method: str = Field(..., min_length=1, max_length=30)
    insurance: str = "No"
    advance_given_amount: float = 0
    co_pay_percent: float = 0
    notes: Optional[str] = None


class DoctorPatientUpdate(SQLModelBase):
    """Whitelisted fields the assigned doctor may change"""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    mobile_number: Optional[str] = None
    referred_by: Optional[str] = None
    service: Optional[str] = None
    treatment: Optional[str] = None
    package: Optional[str] = None
    notes: Optional[str] = None


class UpdateType(str, Enum):
    PAYMENT = "payment"
    STATUS = "status"
    ADVANCE_CLAIM = "advance_claim"


class PatientRecordUpdate(SQLModelBase):
    """Staff update of a registration; `update_type` selects the branch"""
    update_type: UpdateType
    # payment
    amount: Optional[float] = Field(None, ge=0)
    paying: Optional[float] = Field(None, ge=0)
    payment_method: Optional[str] = None
    # status
    status: Optional[str] = None
    rejection_note: Optional[str] = None
    # advance claim
    advance_claim_status: Optional[ClaimStatus] = None
    advance_claim_cancellation_remark: Optional[str] = None
    advance_claim_release_date: Optional[datetime] = None
    advance_claim_released_by: Optional[str] = None


class ClaimAction(str, Enum):
    RELEASE = "release"
    CANCEL = "cancel"


class ClaimActionRequest(SQLModelBase):
    id: str
    action: ClaimAction
    checklist: Optional[dict] = None


# ==================== Response schemas ====================

class PatientRegistrationResponse(TimestampResponse):
    user_id: str
    invoice_number: str
    invoiced_by: Optional[str]
    invoiced_date: datetime
    emr_number: Optional[str]
    first_name: str
    last_name: Optional[str]
    email: Optional[str]
    mobile_number: str
    gender: str
    patient_type: Optional[str]
    referred_by: Optional[str]
    doctor: str
    service: str
    treatment: Optional[str]
    package: Optional[str]
    notes: Optional[str]
    amount: float
    paid: float
    advance: float
    pending: float
    payment_method: Optional[str]
    payment_history: List[dict]
    status: Optional[str]
    rejection_note: Optional[str]
    insurance: str
    advance_given_amount: float
    co_pay_percent: float
    advance_claim_status: str
    advance_claim_release_date: Optional[datetime]
    advance_claim_released_by: Optional[str]
    advance_claim_cancellation_remark: Optional[str]
