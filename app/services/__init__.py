"""
Service layer

Multi-record operations that run inside one unit of work, plus the
background notification dispatcher and the maintenance sweep.
"""
from .notifications import queue_notification
from .job_postings import (
    apply_to_job,
    delete_application,
    delete_job_posting,
    moderate_job,
    update_application_status,
)
from .cleanup import CleanupReport, run_cleanup
from .outbox import OutboxDispatcher

__all__ = [
    "queue_notification",
    "apply_to_job",
    "delete_application",
    "delete_job_posting",
    "moderate_job",
    "update_application_status",
    "CleanupReport",
    "run_cleanup",
    "OutboxDispatcher",
]
