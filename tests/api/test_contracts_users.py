"""
Contract and user administration tests
"""
import pytest
from httpx import AsyncClient

from app.models import Contract, User

CONTRACTS = "/api/v1/contracts"
ADMIN_CONTRACTS = "/api/v1/admin/contracts"
ADMIN_USERS = "/api/v1/admin/users"


# ========== Contracts ==========

@pytest.mark.asyncio
async def test_admin_assigns_contract(client: AsyncClient, factory):
    admin = await factory.create_user("admin")
    staff = await factory.create_user("staff")
    other = await factory.create_user("staff")

    resp = await client.post(
        ADMIN_CONTRACTS,
        json={
            "title": "Reception cover",
            "responsible_person_id": staff.id,
            "start_date": "2025-01-01",
            "end_date": "2025-06-30",
            "amount": 12000,
        },
        headers=factory.headers(admin),
    )
    assert resp.status_code == 201
    contract_id = resp.json()["data"]["id"]
    assert resp.json()["data"]["status"] == "active"

    resp = await client.get(f"{CONTRACTS}/mine", headers=factory.headers(staff))
    assert [c["id"] for c in resp.json()["data"]] == [contract_id]

    resp = await client.get(f"{CONTRACTS}/mine", headers=factory.headers(other))
    assert resp.json()["data"] == []

    resp = await client.get(ADMIN_CONTRACTS, headers=factory.headers(admin))
    assert len(resp.json()["data"]) == 1


@pytest.mark.asyncio
async def test_contract_validation(client: AsyncClient, factory):
    admin = await factory.create_user("admin")
    staff = await factory.create_user("staff")

    resp = await client.post(
        ADMIN_CONTRACTS,
        json={
            "title": "Backwards",
            "responsible_person_id": staff.id,
            "start_date": "2025-06-30",
            "end_date": "2025-01-01",
        },
        headers=factory.headers(admin),
    )
    assert resp.status_code == 400

    resp = await client.post(
        ADMIN_CONTRACTS,
        json={"title": "Nobody", "responsible_person_id": "missing"},
        headers=factory.headers(admin),
    )
    assert resp.status_code == 404
    assert await factory.count(Contract) == 0


@pytest.mark.asyncio
async def test_own_contracts_staff_only(client: AsyncClient, factory):
    doctor = await factory.create_user("doctor")

    resp = await client.get(f"{CONTRACTS}/mine", headers=factory.headers(doctor))
    assert resp.status_code == 403
    assert resp.json()["message"] == "Access denied. Staff only."


@pytest.mark.asyncio
async def test_delete_contract(client: AsyncClient, factory):
    admin = await factory.create_user("admin")
    staff = await factory.create_user("staff")
    resp = await client.post(
        ADMIN_CONTRACTS,
        json={"title": "Temp", "responsible_person_id": staff.id},
        headers=factory.headers(admin),
    )
    contract_id = resp.json()["data"]["id"]

    resp = await client.delete(f"{ADMIN_CONTRACTS}/{contract_id}", headers=factory.headers(staff))
    assert resp.status_code == 403

    resp = await client.delete(f"{ADMIN_CONTRACTS}/{contract_id}", headers=factory.headers(admin))
    assert resp.status_code == 200
    assert await factory.count(Contract) == 0

    resp = await client.delete(f"{ADMIN_CONTRACTS}/{contract_id}", headers=factory.headers(admin))
    assert resp.status_code == 404


# ========== Users ==========

@pytest.mark.asyncio
async def test_me(client: AsyncClient, factory):
    doctor = await factory.create_user("doctor", name="Dr. Rana")

    resp = await client.get("/api/v1/auth/me", headers=factory.headers(doctor))
    assert resp.status_code == 200
    assert resp.json()["data"]["name"] == "Dr. Rana"
    assert resp.json()["data"]["role"] == "doctor"


@pytest.mark.asyncio
async def test_admin_creates_user_unique_per_role(client: AsyncClient, factory):
    admin = await factory.create_user("admin")
    payload = {"name": "Huda", "email": "huda@example.com", "role": "staff"}

    resp = await client.post(ADMIN_USERS, json=payload, headers=factory.headers(admin))
    assert resp.status_code == 201
    assert resp.json()["data"]["is_approved"] is False

    resp = await client.post(ADMIN_USERS, json=payload, headers=factory.headers(admin))
    assert resp.status_code == 409

    # the same email may hold another role
    resp = await client.post(
        ADMIN_USERS, json={**payload, "role": "doctor"}, headers=factory.headers(admin)
    )
    assert resp.status_code == 201
    assert await factory.count(User, User.email == "huda@example.com") == 2


@pytest.mark.asyncio
async def test_list_users_by_role(client: AsyncClient, factory):
    admin = await factory.create_user("admin")
    doctor = await factory.create_user("doctor")
    await factory.create_user("staff")

    resp = await client.get(ADMIN_USERS, params={"role": "doctor"}, headers=factory.headers(admin))
    assert [u["id"] for u in resp.json()["data"]] == [doctor.id]

    resp = await client.get(ADMIN_USERS, headers=factory.headers(admin))
    assert len(resp.json()["data"]) == 3

    resp = await client.get(ADMIN_USERS, headers=factory.headers(doctor))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_approval_toggles_declined(client: AsyncClient, factory):
    admin = await factory.create_user("admin")
    doctor = await factory.create_user("doctor", is_approved=False)
    url = f"{ADMIN_USERS}/{doctor.id}/approval"

    resp = await client.patch(url, json={"approved": False}, headers=factory.headers(admin))
    assert resp.json()["data"]["declined"] is True

    resp = await client.patch(url, json={"approved": True}, headers=factory.headers(admin))
    data = resp.json()["data"]
    assert data["is_approved"] is True
    assert data["declined"] is False

    resp = await client.patch(
        f"{ADMIN_USERS}/missing/approval", json={"approved": True}, headers=factory.headers(admin)
    )
    assert resp.status_code == 404
