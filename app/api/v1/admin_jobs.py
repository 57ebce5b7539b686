"""
Job moderation API routes (admin)
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.policy import Action, require
from app.core.response import DictResponse, ResponseModel, success_response
from app.crud import job_posting_crud, user_crud
from app.models import JobModerationRequest, JobPostingResponse, JobStatus, User, UserBrief
from app.services import delete_job_posting, moderate_job
from .deps import wake_outbox

router = APIRouter()


@router.get("", summary="All postings grouped by status", response_model=DictResponse)
async def list_jobs_by_status(
    user: User = Depends(require(Action.JOB_MODERATE)),
    db: AsyncSession = Depends(get_db),
):
    """
    Returns `{"pending": [...], "approved": [...], "declined": [...]}`,
    each posting with a `poster` summary
    """
    grouped = {}
    poster_ids = set()
    for status in JobStatus:
        grouped[status.value] = await job_posting_crud.get_by_status(db, status.value)
        poster_ids.update(job.posted_by for job in grouped[status.value])

    posters = {
        u.id: UserBrief.model_validate(u).model_dump()
        for u in await user_crud.get_by_ids(db, list(poster_ids))
    }

    data = {}
    for status, jobs in grouped.items():
        items = []
        for job in jobs:
            item = JobPostingResponse.model_validate(job).model_dump()
            item["poster"] = posters.get(job.posted_by)
            items.append(item)
        data[status] = items
    return success_response(data=data)


@router.patch(
    "/{job_id}/status",
    summary="Approve or decline a posting",
    response_model=ResponseModel[JobPostingResponse],
)
async def set_job_status(
    job_id: str,
    data: JobModerationRequest,
    request: Request,
    user: User = Depends(require(Action.JOB_MODERATE)),
    db: AsyncSession = Depends(get_db),
):
    job, notification = await moderate_job(db, job_id, data.status, user)
    if notification is not None:
        wake_outbox(request)
    return success_response(
        data=JobPostingResponse.model_validate(job).model_dump(),
        message=f"Job {job.status}",
    )


@router.delete("/{job_id}", summary="Delete a posting and related data", response_model=DictResponse)
async def remove_job(
    job_id: str,
    user: User = Depends(require(Action.JOB_MODERATE)),
    db: AsyncSession = Depends(get_db),
):
    result = await delete_job_posting(db, job_id, user)
    return success_response(data=result, message="Job and related data deleted successfully")
