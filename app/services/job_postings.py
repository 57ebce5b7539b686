"""
Job posting workflows

Every function here touches more than one record and runs inside a
`UnitOfWork`: either all of its writes land or none do.
"""
from typing import Optional, Tuple

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import UnitOfWork
from app.core.exceptions import ConflictException, NotFoundException, ValidationException
from app.core.policy import Action, ApplicationContext, policy
from app.crud import job_application_crud, job_posting_crud, notification_crud
from app.models import (
    ApplicationStatus,
    JobApplication,
    JobApplicationCreate,
    JobPosting,
    JobStatus,
    Notification,
    NotificationType,
    User,
)
from .notifications import queue_notification

DUPLICATE_APPLICATION = "Already applied to this job."


async def delete_job_posting(db: AsyncSession, job_id: str, subject: User) -> dict:
    """
    Remove a posting with its applications and their notifications

    Raises:
        NotFoundException: no such job, or `subject` may not manage it
        TransactionConflictException: the write was aborted by a conflict
    """
    async with UnitOfWork(db):
        job = await job_posting_crud.get(db, job_id)
        if job is None or not policy.evaluate(subject, Action.JOB_MANAGE, job):
            raise NotFoundException("Job not found or not authorized")

        # notifications first, they are matched through the job's applications
        notifications_deleted = await notification_crud.delete_for_job(db, job_id)
        applications_deleted = await job_application_crud.delete_by_job(db, job_id)
        await job_posting_crud.delete_one(db, job_id)

    logger.info(
        f"Job {job_id} deleted by {subject.id}: "
        f"{applications_deleted} applications, {notifications_deleted} notifications"
    )
    return {
        "job_id": job_id,
        "applications_deleted": applications_deleted,
        "notifications_deleted": notifications_deleted,
    }


async def delete_application(db: AsyncSession, application_id: str, subject: User) -> dict:
    """Remove one application and the notifications about it"""
    async with UnitOfWork(db):
        application = await job_application_crud.get(db, application_id)
        if application is None:
            raise NotFoundException("Application not found")
        job = await job_posting_crud.get(db, application.job_id)
        policy.enforce(
            subject, Action.APPLICATION_DELETE, ApplicationContext(application, job)
        )

        notifications_deleted = await notification_crud.delete_for_applications(
            db, [application_id]
        )
        await job_application_crud.delete_by_ids(db, [application_id])

    logger.info(f"Application {application_id} deleted by {subject.id}")
    return {
        "application_id": application_id,
        "notifications_deleted": notifications_deleted,
    }


async def apply_to_job(
    db: AsyncSession,
    job_id: str,
    subject: User,
    payload: JobApplicationCreate,
) -> JobApplication:
    """
    Submit an application for `subject`

    Raises:
        NotFoundException: unknown job
        ValidationException: the job no longer accepts applications
        ConflictException: `subject` already applied
    """
    job = await job_posting_crud.get(db, job_id)
    if job is None:
        raise NotFoundException("Job not found")
    if not job.is_active:
        raise ValidationException("This job is no longer accepting applications")

    if await job_application_crud.exists(db, job_id, subject.id):
        raise ConflictException(DUPLICATE_APPLICATION)

    applicant_info = payload.applicant_info or {
        "name": subject.name,
        "email": subject.email,
        "phone": subject.phone,
    }
    try:
        async with UnitOfWork(db):
            application = JobApplication(
                job_id=job_id,
                applicant_id=subject.id,
                applicant_info=applicant_info,
                resume=payload.resume,
            )
            db.add(application)
    except IntegrityError as e:
        # lost a race: the job was deleted or the same user applied concurrently
        if await job_posting_crud.get(db, job_id) is None:
            logger.warning(f"Application rejected, job {job_id} was deleted: {e.orig}")
            raise NotFoundException("Job not found") from e
        logger.warning(f"Duplicate application rejected by constraint: {e.orig}")
        raise ConflictException(DUPLICATE_APPLICATION) from e

    logger.info(f"User {subject.id} applied to job {job_id}")
    return application


async def update_application_status(
    db: AsyncSession,
    application_id: str,
    status: ApplicationStatus,
    subject: User,
) -> Tuple[JobApplication, Notification]:
    """
    Change an application status and notify the applicant

    The notification is written in the same transaction; pushing it to the
    applicant is the outbox dispatcher's job.
    """
    status = ApplicationStatus(status).value
    async with UnitOfWork(db):
        application = await job_application_crud.get(db, application_id)
        if application is None:
            raise NotFoundException("Application not found")
        job = await job_posting_crud.get(db, application.job_id)
        if job is None:
            raise NotFoundException("Job not found")
        policy.enforce(subject, Action.APPLICATION_REVIEW, job)

        application.status = status
        notification = queue_notification(
            db,
            user_id=application.applicant_id,
            message=f'Your application for "{job.title}" is now {status}.',
            type=NotificationType.APPLICATION_STATUS,
            related_job_id=job.id,
            related_application_id=application.id,
        )

    logger.info(f"Application {application_id} -> {status} by {subject.id}")
    return application, notification


async def moderate_job(
    db: AsyncSession,
    job_id: str,
    status: JobStatus,
    subject: User,
) -> Tuple[JobPosting, Optional[Notification]]:
    """Approve or decline a posting and tell the poster"""
    status = JobStatus(status).value
    if status not in (JobStatus.APPROVED.value, JobStatus.DECLINED.value):
        raise ValidationException("Invalid status")

    async with UnitOfWork(db):
        job = await job_posting_crud.get(db, job_id)
        if job is None:
            raise NotFoundException("Job not found")
        policy.enforce(subject, Action.JOB_MODERATE, job)

        job.status = status
        notification = None
        if job.posted_by != subject.id:
            notification = queue_notification(
                db,
                user_id=job.posted_by,
                message=f'Your job posting "{job.title}" was {status}.',
                type=NotificationType.JOB_STATUS,
                related_job_id=job.id,
            )

    logger.info(f"Job {job_id} moderated to {status} by {subject.id}")
    return job, notification
