"""
Admin job moderation tests
"""
import pytest
from httpx import AsyncClient
from sqlalchemy import select

from app.models import JobApplication, JobPosting, Notification

BASE = "/api/v1/admin/jobs"


@pytest.mark.asyncio
async def test_list_grouped_by_status(client: AsyncClient, factory):
    admin = await factory.create_user("admin")
    clinic = await factory.create_user("clinic")
    pending = await factory.create_job(clinic, status="pending")
    approved = await factory.create_job(clinic, status="approved")

    resp = await client.get(BASE, headers=factory.headers(admin))
    assert resp.status_code == 200
    data = resp.json()["data"]
    assert set(data) == {"pending", "approved", "declined"}
    assert [j["id"] for j in data["pending"]] == [pending.id]
    assert [j["id"] for j in data["approved"]] == [approved.id]
    assert data["declined"] == []
    assert data["pending"][0]["poster"]["email"] == clinic.email


@pytest.mark.asyncio
async def test_non_admin_rejected(client: AsyncClient, factory):
    clinic = await factory.create_user("clinic")
    job = await factory.create_job(clinic, status="pending")

    resp = await client.get(BASE, headers=factory.headers(clinic))
    assert resp.status_code == 403
    assert resp.json()["message"] == "Unauthorized, admin only"

    resp = await client.patch(
        f"{BASE}/{job.id}/status", json={"status": "approved"}, headers=factory.headers(clinic)
    )
    assert resp.status_code == 403
    assert (await factory.get(JobPosting, job.id)).status == "pending"


@pytest.mark.asyncio
async def test_approve_notifies_poster(client: AsyncClient, factory):
    admin = await factory.create_user("admin")
    clinic = await factory.create_user("clinic")
    job = await factory.create_job(clinic, status="pending", title="Lab Technician")

    resp = await client.patch(
        f"{BASE}/{job.id}/status", json={"status": "approved"}, headers=factory.headers(admin)
    )
    assert resp.status_code == 200
    assert resp.json()["data"]["status"] == "approved"

    async with factory.database.session() as session:
        result = await session.execute(
            select(Notification).where(Notification.user_id == clinic.id)
        )
        notifications = list(result.scalars().all())
    assert len(notifications) == 1
    assert notifications[0].type == "job_status"
    assert notifications[0].related_job_id == job.id
    assert "Lab Technician" in notifications[0].message

    # approved postings show up publicly
    resp = await client.get("/api/v1/job-postings")
    assert [j["id"] for j in resp.json()["data"]] == [job.id]


@pytest.mark.asyncio
async def test_moderation_status_values(client: AsyncClient, factory):
    admin = await factory.create_user("admin")
    clinic = await factory.create_user("clinic")
    job = await factory.create_job(clinic, status="pending")
    url = f"{BASE}/{job.id}/status"

    resp = await client.patch(url, json={"status": "pending"}, headers=factory.headers(admin))
    assert resp.status_code == 400

    resp = await client.patch(url, json={"status": "archived"}, headers=factory.headers(admin))
    assert resp.status_code == 400

    resp = await client.patch(
        f"{BASE}/missing/status", json={"status": "declined"}, headers=factory.headers(admin)
    )
    assert resp.status_code == 404
    assert await factory.count(Notification) == 0


@pytest.mark.asyncio
async def test_admin_delete_with_related_data(client: AsyncClient, factory):
    admin = await factory.create_user("admin")
    clinic = await factory.create_user("clinic")
    nurse = await factory.create_user("staff")
    job = await factory.create_job(clinic)
    application = await factory.create_application(job, nurse)
    await factory.create_notification(nurse, related_application_id=application.id)

    resp = await client.delete(f"{BASE}/{job.id}", headers=factory.headers(admin))
    assert resp.status_code == 200
    assert resp.json()["message"] == "Job and related data deleted successfully"
    assert await factory.count(JobPosting) == 0
    assert await factory.count(JobApplication) == 0
    assert await factory.count(Notification) == 0
