"""
CRUD operations
"""
from .user import user_crud
from .job_posting import job_posting_crud
from .job_application import job_application_crud
from .notification import notification_crud
from .patient import patient_crud
from .prescription import prescription_crud, chat_crud
from .treatment import treatment_crud, doctor_treatment_crud
from .contract import contract_crud

__all__ = [
    "user_crud",
    "job_posting_crud",
    "job_application_crud",
    "notification_crud",
    "patient_crud",
    "prescription_crud",
    "chat_crud",
    "treatment_crud",
    "doctor_treatment_crud",
    "contract_crud",
]
