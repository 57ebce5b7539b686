"""
Job posting API routes
"""
from datetime import timedelta
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, Request
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.database import get_db
from app.core.exceptions import NotFoundException
from app.core.policy import Action, policy, require
from app.core.response import ResponseModel, DictResponse, success_response
from app.crud import job_application_crud, job_posting_crud
from app.models import (
    JobApplication,
    JobApplicationCreate,
    JobApplicationResponse,
    JobPosting,
    JobPostingCreate,
    JobPostingResponse,
    JobToggleRequest,
    ApplicationStatusUpdate,
    User,
    utcnow,
)
from app.services import (
    apply_to_job,
    delete_application,
    delete_job_posting,
    update_application_status,
)
from .deps import wake_outbox

router = APIRouter()


def resume_url(resume: Optional[str]) -> Optional[str]:
    """Absolute URL for a stored resume path"""
    if not resume:
        return None
    if resume.startswith(("http://", "https://")):
        return resume
    return f"{settings.public_base_url.rstrip('/')}/{resume.lstrip('/')}"


def application_out(application: JobApplication, job_title: Optional[str] = None) -> dict:
    item = JobApplicationResponse.model_validate(application)
    item.job_title = job_title
    item.resume_url = resume_url(application.resume)
    return item.model_dump()


def job_out(job: JobPosting) -> dict:
    return JobPostingResponse.model_validate(job).model_dump()


@router.get("", summary="List open job postings", response_model=ResponseModel[List[JobPostingResponse]])
async def list_job_postings(
    location: Optional[str] = Query(None),
    job_type: Optional[str] = Query(None),
    department: Optional[str] = Query(None),
    salary: Optional[str] = Query(None, description="Exact match"),
    skills: Optional[str] = Query(None, description="Comma separated"),
    time: Optional[str] = Query(None, description="'week' for the last 7 days"),
    job_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    """
    Approved and active postings only

    Text filters match case-insensitively on any part of the value.
    """
    # other time values are ignored
    posted_since = utcnow() - timedelta(days=7) if time == "week" else None

    skill_list = [s.strip() for s in skills.split(",") if s.strip()] if skills else None

    jobs = await job_posting_crud.search_public(
        db,
        location=location,
        job_type=job_type,
        department=department,
        salary=salary,
        job_id=job_id,
        skills=skill_list,
        posted_since=posted_since,
    )
    return success_response(data=[job_out(j) for j in jobs])


@router.post(
    "",
    status_code=201,
    summary="Create a job posting",
    response_model=ResponseModel[JobPostingResponse],
)
async def create_job_posting(
    data: JobPostingCreate,
    user: User = Depends(require(Action.JOB_CREATE)),
    db: AsyncSession = Depends(get_db),
):
    """
    New postings start as `pending` until an admin approves them
    """
    job = await job_posting_crud.create(
        db,
        obj_in={
            **data.model_dump(),
            "posted_by": user.id,
            "role": user.role,
        },
    )
    await db.commit()
    logger.info(f"Job posting created: {job.id} by {user.id}")
    return success_response(data=job_out(job), message="Job posted successfully", code=201)


@router.get("/mine", summary="Postings of the caller", response_model=ResponseModel[List[JobPostingResponse]])
async def my_job_postings(
    user: User = Depends(require(Action.JOB_VIEW_OWN)),
    db: AsyncSession = Depends(get_db),
):
    jobs = await job_posting_crud.get_by_owner(db, user.id)
    return success_response(data=[job_out(j) for j in jobs])


@router.get(
    "/applications",
    summary="Applications to the caller's postings",
    response_model=ResponseModel[List[JobApplicationResponse]],
)
async def applications_to_my_jobs(
    user: User = Depends(require(Action.JOB_VIEW_OWN)),
    db: AsyncSession = Depends(get_db),
):
    job_ids = await job_posting_crud.get_ids_by_owner(db, user.id)
    rows = await job_application_crud.get_for_jobs_with_title(db, job_ids)
    return success_response(data=[application_out(a, title) for a, title in rows])


@router.get(
    "/my-applications",
    summary="Applications the caller submitted",
    response_model=ResponseModel[List[JobApplicationResponse]],
)
async def my_applications(
    user: User = Depends(require(Action.JOB_APPLY)),
    db: AsyncSession = Depends(get_db),
):
    rows = await job_application_crud.get_by_applicant_with_title(db, user.id)
    return success_response(data=[application_out(a, title) for a, title in rows])


@router.put(
    "/applications/{application_id}/status",
    summary="Update an application status",
    response_model=ResponseModel[JobApplicationResponse],
)
async def set_application_status(
    application_id: str,
    data: ApplicationStatusUpdate,
    request: Request,
    user: User = Depends(require(Action.APPLICATION_REVIEW)),
    db: AsyncSession = Depends(get_db),
):
    """
    Only the poster of the job (or an admin) may review; the applicant is
    notified once the change is committed
    """
    application, _ = await update_application_status(db, application_id, data.status, user)
    wake_outbox(request)
    return success_response(data=application_out(application), message="Status updated")


@router.delete(
    "/applications/{application_id}",
    summary="Delete an application",
    response_model=DictResponse,
)
async def remove_application(
    application_id: str,
    user: User = Depends(require(Action.APPLICATION_DELETE)),
    db: AsyncSession = Depends(get_db),
):
    result = await delete_application(db, application_id, user)
    return success_response(data=result, message="Application deleted successfully")


@router.get("/{job_id}", summary="Job posting detail", response_model=ResponseModel[JobPostingResponse])
async def get_job_posting(
    job_id: str,
    db: AsyncSession = Depends(get_db),
):
    job = await job_posting_crud.get(db, job_id)
    if not job:
        raise NotFoundException("Job not found")
    return success_response(data=job_out(job))


@router.patch("/{job_id}/toggle", summary="Open or close a posting", response_model=ResponseModel[JobPostingResponse])
async def toggle_job_posting(
    job_id: str,
    data: JobToggleRequest,
    user: User = Depends(require(Action.JOB_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    job = await job_posting_crud.get(db, job_id)
    if job is None or not policy.evaluate(user, Action.JOB_MANAGE, job):
        raise NotFoundException("Job not found or not authorized")

    job.is_active = data.is_active
    await db.commit()
    logger.info(f"Job {job_id} is_active={data.is_active} by {user.id}")
    return success_response(data=job_out(job), message="Job status updated")


@router.delete("/{job_id}", summary="Delete a posting with its applications", response_model=DictResponse)
async def remove_job_posting(
    job_id: str,
    user: User = Depends(require(Action.JOB_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    result = await delete_job_posting(db, job_id, user)
    return success_response(data=result, message="Job deleted")


@router.post(
    "/{job_id}/apply",
    status_code=201,
    summary="Apply to a job",
    response_model=ResponseModel[JobApplicationResponse],
)
async def apply(
    job_id: str,
    data: Optional[JobApplicationCreate] = None,
    user: User = Depends(require(Action.JOB_APPLY)),
    db: AsyncSession = Depends(get_db),
):
    application = await apply_to_job(db, job_id, user, data or JobApplicationCreate())
    return success_response(
        data=application_out(application),
        message="Application submitted successfully.",
        code=201,
    )
