"""
Job deletion cascade tests

Deleting a posting removes its applications and every notification about
the posting or its applications, all in one transaction.
"""
import pytest
from httpx import AsyncClient
from sqlalchemy import delete
from sqlalchemy.exc import OperationalError

from app.core.exceptions import NotFoundException
from app.models import JobApplication, JobApplicationCreate, JobPosting, Notification
from app.services import apply_to_job, delete_job_posting
from app.services import job_postings as job_posting_service

BASE = "/api/v1/job-postings"


async def _job_with_history(factory):
    owner = await factory.create_user("clinic")
    nurse = await factory.create_user("staff")
    medic = await factory.create_user("staff")
    job = await factory.create_job(owner)
    first = await factory.create_application(job, nurse)
    second = await factory.create_application(job, medic)
    await factory.create_notification(nurse, related_application_id=first.id, related_job_id=job.id)
    await factory.create_notification(medic, related_application_id=second.id)
    await factory.create_notification(owner, related_job_id=job.id)
    return owner, job


@pytest.mark.asyncio
async def test_owner_delete_removes_everything(client: AsyncClient, factory):
    owner, job = await _job_with_history(factory)
    other_job = await factory.create_job(owner)
    bystander = await factory.create_user("staff")
    await factory.create_application(other_job, bystander)
    await factory.create_notification(bystander, related_job_id=other_job.id)

    resp = await client.delete(f"{BASE}/{job.id}", headers=factory.headers(owner))
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert data["applications_deleted"] == 2
    assert data["notifications_deleted"] == 3

    assert await factory.get(JobPosting, job.id) is None
    assert await factory.count(JobApplication, JobApplication.job_id == job.id) == 0
    assert await factory.count(Notification, Notification.related_job_id == job.id) == 0

    # other postings untouched
    assert await factory.count(JobApplication) == 1
    assert await factory.count(Notification) == 1


@pytest.mark.asyncio
async def test_admin_may_delete_any_posting(client: AsyncClient, factory):
    _, job = await _job_with_history(factory)
    admin = await factory.create_user("admin")

    resp = await client.delete(f"{BASE}/{job.id}", headers=factory.headers(admin))
    assert resp.status_code == 200
    assert await factory.count(JobPosting) == 0
    assert await factory.count(JobApplication) == 0


@pytest.mark.asyncio
async def test_non_owner_delete_hides_posting(client: AsyncClient, factory):
    _, job = await _job_with_history(factory)
    intruder = await factory.create_user("doctor")

    resp = await client.delete(f"{BASE}/{job.id}", headers=factory.headers(intruder))
    assert resp.status_code == 404
    assert resp.json()["message"] == "Job not found or not authorized"

    assert await factory.count(JobPosting) == 1
    assert await factory.count(JobApplication) == 2
    assert await factory.count(Notification) == 3


@pytest.mark.asyncio
async def test_delete_missing_posting(db_session, factory):
    owner = await factory.create_user("clinic")

    with pytest.raises(NotFoundException):
        await delete_job_posting(db_session, "missing", owner)


@pytest.mark.asyncio
async def test_failure_mid_cascade_rolls_back(db_session, factory, monkeypatch):
    owner, job = await _job_with_history(factory)

    async def broken_delete(db, id):
        raise RuntimeError("disk full")

    monkeypatch.setattr(job_posting_service.job_posting_crud, "delete_one", broken_delete)

    with pytest.raises(RuntimeError):
        await delete_job_posting(db_session, job.id, owner)

    # applications and notifications were deleted before the failure
    assert await factory.count(JobPosting) == 1
    assert await factory.count(JobApplication) == 2
    assert await factory.count(Notification) == 3


@pytest.mark.asyncio
async def test_write_conflict_is_retryable(client: AsyncClient, factory, monkeypatch):
    owner, job = await _job_with_history(factory)

    async def locked(db, id):
        raise OperationalError("DELETE FROM job_postings", {}, Exception("database is locked"))

    monkeypatch.setattr(job_posting_service.job_posting_crud, "delete_one", locked)

    resp = await client.delete(f"{BASE}/{job.id}", headers=factory.headers(owner))
    assert resp.status_code == 409
    body = resp.json()
    assert body["error"] == "transaction_conflict"
    assert body["data"] == {"retryable": True}

    assert await factory.count(JobApplication) == 2
    assert await factory.count(Notification) == 3


@pytest.mark.asyncio
async def test_application_committed_mid_delete_is_removed(db_session, factory, monkeypatch):
    owner, job = await _job_with_history(factory)
    latecomer = await factory.create_user("staff")
    notification_crud = job_posting_service.notification_crud
    original = notification_crud.delete_for_job

    async def apply_then_delete(db, job_id):
        # another request commits an application after the ownership check
        late = await factory.create_application(job, latecomer)
        await factory.create_notification(latecomer, related_application_id=late.id)
        return await original(db, job_id)

    monkeypatch.setattr(notification_crud, "delete_for_job", apply_then_delete)

    result = await delete_job_posting(db_session, job.id, owner)
    assert result["applications_deleted"] == 3
    assert result["notifications_deleted"] == 4

    assert await factory.count(JobApplication, JobApplication.job_id == job.id) == 0
    assert await factory.count(Notification) == 0


@pytest.mark.asyncio
async def test_apply_to_job_deleted_mid_request(db_session, factory, monkeypatch):
    owner = await factory.create_user("clinic")
    nurse = await factory.create_user("staff")
    job = await factory.create_job(owner)
    application_crud = job_posting_service.job_application_crud

    async def job_deleted_meanwhile(db, job_id, applicant_id):
        async with factory.database.session() as other:
            await other.execute(delete(JobPosting).where(JobPosting.id == job_id))
            await other.commit()
        return False

    monkeypatch.setattr(application_crud, "exists", job_deleted_meanwhile)

    with pytest.raises(NotFoundException) as exc:
        await apply_to_job(db_session, job.id, nurse, JobApplicationCreate())
    assert exc.value.message == "Job not found"
    assert await factory.count(JobApplication) == 0
