"""
API routes
"""
from fastapi import APIRouter

from .v1 import (
    admin_jobs,
    contracts,
    job_postings,
    notifications,
    patients,
    prescriptions,
    treatments,
    users,
)

api_router = APIRouter()

api_router.include_router(
    job_postings.router,
    prefix="/job-postings",
    tags=["Job postings"]
)
api_router.include_router(
    admin_jobs.router,
    prefix="/admin/jobs",
    tags=["Job moderation"]
)
api_router.include_router(
    notifications.router,
    prefix="/notifications",
    tags=["Notifications"]
)
api_router.include_router(
    notifications.ws_router,
    prefix="/ws",
    tags=["Notifications"]
)
api_router.include_router(
    patients.staff_router,
    prefix="/staff",
    tags=["Patients"]
)
api_router.include_router(
    patients.doctor_router,
    prefix="/doctor",
    tags=["Patients"]
)
api_router.include_router(
    prescriptions.router,
    prefix="/prescriptions",
    tags=["Prescriptions"]
)
api_router.include_router(
    prescriptions.chat_router,
    prefix="/chat",
    tags=["Chat"]
)
api_router.include_router(
    treatments.router,
    prefix="/treatments",
    tags=["Treatments"]
)
api_router.include_router(
    treatments.admin_router,
    prefix="/admin/treatments",
    tags=["Treatments"]
)
api_router.include_router(
    treatments.staff_router,
    prefix="/staff/doctor-treatments",
    tags=["Treatments"]
)
api_router.include_router(
    contracts.router,
    prefix="/contracts",
    tags=["Contracts"]
)
api_router.include_router(
    contracts.admin_router,
    prefix="/admin/contracts",
    tags=["Contracts"]
)
api_router.include_router(
    users.auth_router,
    prefix="/auth",
    tags=["Users"]
)
api_router.include_router(
    users.admin_router,
    prefix="/admin/users",
    tags=["Users"]
)
