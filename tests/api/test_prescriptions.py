"""
Prescription request and chat tests
"""
import pytest
from httpx import AsyncClient

from app.models import Chat, Notification, PrescriptionRequest

BASE = "/api/v1/prescriptions"
CHAT = "/api/v1/chat"


def message(id: str, sender) -> dict:
    return {
        "id": id,
        "sender_id": sender.id,
        "sender_role": sender.role,
        "content": "Hello",
        "prescription": None,
        "timestamp": "2025-01-01T10:00:00+00:00",
    }


@pytest.mark.asyncio
async def test_request_opens_chat(client: AsyncClient, factory):
    patient = await factory.create_user("user")
    doctor = await factory.create_user("doctor")

    resp = await client.post(
        BASE,
        json={"doctor_id": doctor.id, "health_issue": "Migraine", "symptoms": "Light sensitivity"},
        headers=factory.headers(patient),
    )
    assert resp.status_code == 201
    data = resp.json()["data"]
    assert data["prescription"]["status"] == "pending"
    assert data["prescription"]["doctor_id"] == doctor.id

    chat = await factory.get(Chat, data["chat_id"])
    assert chat.prescription_request_id == data["prescription"]["id"]
    assert chat.user_id == patient.id
    assert chat.messages == []


@pytest.mark.asyncio
async def test_request_needs_a_real_doctor(client: AsyncClient, factory):
    patient = await factory.create_user("user")
    clinic = await factory.create_user("clinic")

    resp = await client.post(
        BASE,
        json={"doctor_id": clinic.id, "health_issue": "Migraine"},
        headers=factory.headers(patient),
    )
    assert resp.status_code == 404
    assert resp.json()["message"] == "Doctor not found"

    resp = await client.post(
        BASE,
        json={"doctor_id": clinic.id, "health_issue": "Migraine"},
        headers=factory.headers(clinic),
    )
    assert resp.status_code == 403
    assert await factory.count(PrescriptionRequest) == 0
    assert await factory.count(Chat) == 0


@pytest.mark.asyncio
async def test_list_for_both_sides(client: AsyncClient, factory):
    patient = await factory.create_user("user")
    doctor = await factory.create_user("doctor")
    other_patient = await factory.create_user("user")
    await factory.create_chat(patient, doctor)
    await factory.create_chat(other_patient, doctor)

    resp = await client.get(BASE, headers=factory.headers(patient))
    assert len(resp.json()["data"]) == 1

    resp = await client.get(BASE, headers=factory.headers(doctor))
    assert len(resp.json()["data"]) == 2


@pytest.mark.asyncio
async def test_delete_by_participant_only(client: AsyncClient, factory):
    patient = await factory.create_user("user")
    doctor = await factory.create_user("doctor")
    stranger = await factory.create_user("user")
    chat = await factory.create_chat(patient, doctor)
    url = f"{BASE}/{chat.prescription_request_id}"

    resp = await client.delete(url, headers=factory.headers(stranger))
    assert resp.status_code == 403
    assert await factory.count(Chat) == 1

    resp = await client.delete(url, headers=factory.headers(doctor))
    assert resp.status_code == 200
    assert resp.json()["data"]["chats_deleted"] == 1
    assert await factory.count(PrescriptionRequest) == 0
    assert await factory.count(Chat) == 0


@pytest.mark.asyncio
async def test_chat_histories(client: AsyncClient, factory):
    patient = await factory.create_user("user", name="Mona")
    doctor = await factory.create_user("doctor", name="Dr. Sami")
    chat = await factory.create_chat(patient, doctor)

    resp = await client.get(f"{CHAT}/user-chats", headers=factory.headers(patient))
    items = resp.json()["data"]
    assert [c["id"] for c in items] == [chat.id]
    assert items[0]["doctor_name"] == "Dr. Sami"
    assert items[0]["health_issue"] == "Headache"

    resp = await client.get(f"{CHAT}/doctor-chats", headers=factory.headers(doctor))
    assert resp.json()["data"][0]["user_name"] == "Mona"

    resp = await client.get(f"{CHAT}/doctor-chats", headers=factory.headers(patient))
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_doctor_reply_progresses_request(client: AsyncClient, factory):
    patient = await factory.create_user("user")
    doctor = await factory.create_user("doctor")
    chat = await factory.create_chat(patient, doctor)
    url = f"{CHAT}/{chat.id}/messages"

    resp = await client.post(url, json={"content": "Since when?"}, headers=factory.headers(doctor))
    assert resp.status_code == 201
    assert resp.json()["data"]["sender_role"] == "doctor"
    request = await factory.get(PrescriptionRequest, chat.prescription_request_id)
    assert request.status == "in_progress"

    resp = await client.post(
        url,
        json={"content": "Take this", "prescription": "Ibuprofen 400mg"},
        headers=factory.headers(doctor),
    )
    assert resp.status_code == 201
    request = await factory.get(PrescriptionRequest, chat.prescription_request_id)
    assert request.status == "completed"
    assert request.prescription == "Ibuprofen 400mg"

    stored = await factory.get(Chat, chat.id)
    assert [m["content"] for m in stored.messages] == ["Since when?", "Take this"]
    assert await factory.count(
        Notification, Notification.user_id == patient.id, Notification.type == "chat_reply"
    ) == 2


@pytest.mark.asyncio
async def test_patient_message_notifies_doctor(client: AsyncClient, factory):
    patient = await factory.create_user("user")
    doctor = await factory.create_user("doctor")
    chat = await factory.create_chat(patient, doctor)

    resp = await client.post(
        f"{CHAT}/{chat.id}/messages",
        json={"content": "Still hurts", "prescription": "anything"},
        headers=factory.headers(patient),
    )
    assert resp.status_code == 201

    # only the doctor can complete a request
    request = await factory.get(PrescriptionRequest, chat.prescription_request_id)
    assert request.status == "pending"
    assert await factory.count(Notification, Notification.user_id == doctor.id) == 1


@pytest.mark.asyncio
async def test_outsider_cannot_post(client: AsyncClient, factory):
    patient = await factory.create_user("user")
    doctor = await factory.create_user("doctor")
    outsider = await factory.create_user("doctor")
    chat = await factory.create_chat(patient, doctor)

    resp = await client.post(
        f"{CHAT}/{chat.id}/messages", json={"content": "Hi"}, headers=factory.headers(outsider)
    )
    assert resp.status_code == 403
    assert (await factory.get(Chat, chat.id)).messages == []
    assert await factory.count(Notification) == 0

    resp = await client.post(
        f"{CHAT}/missing/messages", json={"content": "Hi"}, headers=factory.headers(doctor)
    )
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_message_deletion_rules(client: AsyncClient, factory):
    patient = await factory.create_user("user")
    doctor = await factory.create_user("doctor")
    other = await factory.create_user("user")
    chat = await factory.create_chat(
        patient, doctor, messages=[message("m1", patient), message("m2", patient)]
    )

    resp = await client.delete(f"{CHAT}/{chat.id}/messages/m1", headers=factory.headers(other))
    assert resp.status_code == 403

    resp = await client.delete(f"{CHAT}/{chat.id}/messages/m1", headers=factory.headers(patient))
    assert resp.status_code == 200

    # the chat's doctor may remove the patient's messages too
    resp = await client.delete(f"{CHAT}/{chat.id}/messages/m2", headers=factory.headers(doctor))
    assert resp.status_code == 200

    resp = await client.delete(f"{CHAT}/{chat.id}/messages/m2", headers=factory.headers(doctor))
    assert resp.status_code == 404

    assert (await factory.get(Chat, chat.id)).messages == []
