"""
SQLModel models

SQLModel unifies the ORM tables and the Pydantic request/response schemas
"""
from .base import SQLModelBase, TimestampMixin, IDMixin, TimestampResponse, utcnow
from .user import User, UserRole, UserCreate, UserResponse, UserBrief, ApprovalRequest
from .job_posting import (
    JobPosting, JobStatus, JobType, JobPostingCreate, JobToggleRequest,
    JobModerationRequest, JobPostingResponse,
)
from .job_application import (
    JobApplication, ApplicationStatus, JobApplicationCreate,
    ApplicationStatusUpdate, JobApplicationResponse,
)
from .notification import Notification, NotificationType, MarkReadRequest, NotificationResponse
from .patient import (
    PatientRegistration, Gender, PatientType, ClaimStatus, ClaimAction,
    CLAIM_RELEASE_CHECKLIST, DOCTOR_EDITABLE_FIELDS,
    PatientRegistrationCreate, DoctorPatientUpdate, UpdateType,
    PatientRecordUpdate, ClaimActionRequest, PatientRegistrationResponse,
)
from .prescription import (
    PrescriptionRequest, PrescriptionStatus, Chat,
    PrescriptionRequestCreate, ChatMessageCreate,
    PrescriptionRequestResponse, ChatResponse,
)
from .treatment import (
    Treatment, DoctorTreatment, slugify, SubcategoryIn, TreatmentCreate,
    DoctorTreatmentCreate, TreatmentResponse, DoctorTreatmentResponse,
)
from .contract import Contract, ContractStatus, ContractCreate, ContractResponse

__all__ = [
    # Base
    "SQLModelBase",
    "TimestampMixin",
    "IDMixin",
    "TimestampResponse",
    "utcnow",
    # User
    "User",
    "UserRole",
    "UserCreate",
    "UserResponse",
    "UserBrief",
    "ApprovalRequest",
    # Job posting
    "JobPosting",
    "JobStatus",
    "JobType",
    "JobPostingCreate",
    "JobToggleRequest",
    "JobModerationRequest",
    "JobPostingResponse",
    # Job application
    "JobApplication",
    "ApplicationStatus",
    "JobApplicationCreate",
    "ApplicationStatusUpdate",
    "JobApplicationResponse",
    # Notification
    "Notification",
    "NotificationType",
    "MarkReadRequest",
    "NotificationResponse",
    # Patient
    "PatientRegistration",
    "Gender",
    "PatientType",
    "ClaimStatus",
    "ClaimAction",
    "CLAIM_RELEASE_CHECKLIST",
    "DOCTOR_EDITABLE_FIELDS",
    "PatientRegistrationCreate",
    "DoctorPatientUpdate",
    "UpdateType",
    "PatientRecordUpdate",
    "ClaimActionRequest",
    "PatientRegistrationResponse",
    # Prescription / chat
    "PrescriptionRequest",
    "PrescriptionStatus",
    "Chat",
    "PrescriptionRequestCreate",
    "ChatMessageCreate",
    "PrescriptionRequestResponse",
    "ChatResponse",
    # Treatment
    "Treatment",
    "DoctorTreatment",
    "slugify",
    "SubcategoryIn",
    "TreatmentCreate",
    "DoctorTreatmentCreate",
    "TreatmentResponse",
    "DoctorTreatmentResponse",
    # Contract
    "Contract",
    "ContractStatus",
    "ContractCreate",
    "ContractResponse",
]
