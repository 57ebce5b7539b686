"""
API v1 routes
"""
from . import (
    admin_jobs,
    contracts,
    job_postings,
    notifications,
    patients,
    prescriptions,
    treatments,
    users,
)

__all__ = [
    "admin_jobs",
    "contracts",
    "job_postings",
    "notifications",
    "patients",
    "prescriptions",
    "treatments",
    "users",
]
