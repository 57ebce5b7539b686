"""
Notification outbox dispatcher tests

Sockets are stand-ins that record what they were sent.
"""
import pytest
from httpx import AsyncClient

from app.core.config import Settings
from app.models import Notification
from app.services import OutboxDispatcher


class FakeSocket:
    def __init__(self, broken: bool = False):
        self.broken = broken
        self.accepted = False
        self.sent = []

    async def accept(self):
        self.accepted = True

    async def send_json(self, message):
        if self.broken:
            raise RuntimeError("connection reset")
        self.sent.append(message)


@pytest.fixture
def dispatcher(database, connections):
    return OutboxDispatcher(database, connections, Settings(outbox_max_attempts=3))


@pytest.mark.asyncio
async def test_delivers_to_connected_user(dispatcher, connections, factory):
    nurse = await factory.create_user("staff")
    notification = await factory.create_notification(nurse)
    socket = FakeSocket()
    await connections.connect(nurse.id, socket)

    assert await dispatcher.dispatch_pending() == 1

    assert socket.accepted
    assert socket.sent[0]["type"] == "new_notification"
    assert socket.sent[0]["notification"]["id"] == notification.id
    stored = await factory.get(Notification, notification.id)
    assert stored.delivered_at is not None
    assert stored.delivery_attempts == 0

    # delivered entries are not pushed again
    assert await dispatcher.dispatch_pending() == 0
    assert len(socket.sent) == 1


@pytest.mark.asyncio
async def test_every_open_socket_receives(dispatcher, connections, factory):
    nurse = await factory.create_user("staff")
    await factory.create_notification(nurse)
    tabs = [FakeSocket(), FakeSocket()]
    for tab in tabs:
        await connections.connect(nurse.id, tab)

    assert await dispatcher.dispatch_pending() == 1
    assert all(len(tab.sent) == 1 for tab in tabs)


@pytest.mark.asyncio
async def test_offline_user_keeps_entry_pending(dispatcher, factory):
    nurse = await factory.create_user("staff")
    notification = await factory.create_notification(nurse)

    assert await dispatcher.dispatch_pending() == 0

    stored = await factory.get(Notification, notification.id)
    assert stored.delivered_at is None
    assert stored.delivery_attempts == 0


@pytest.mark.asyncio
async def test_failed_push_counts_attempt(dispatcher, connections, factory):
    nurse = await factory.create_user("staff")
    notification = await factory.create_notification(nurse)
    await connections.connect(nurse.id, FakeSocket(broken=True))

    assert await dispatcher.dispatch_pending() == 0

    stored = await factory.get(Notification, notification.id)
    assert stored.delivered_at is None
    assert stored.delivery_attempts == 1
    assert stored.last_error
    # the dead socket was dropped
    assert not connections.is_connected(nurse.id)

    socket = FakeSocket()
    await connections.connect(nurse.id, socket)
    assert await dispatcher.dispatch_pending() == 1
    stored = await factory.get(Notification, notification.id)
    assert stored.delivered_at is not None
    assert stored.last_error is None


@pytest.mark.asyncio
async def test_gives_up_after_max_attempts(dispatcher, connections, factory):
    nurse = await factory.create_user("staff")
    await factory.create_notification(nurse, delivery_attempts=3)
    socket = FakeSocket()
    await connections.connect(nurse.id, socket)

    assert await dispatcher.dispatch_pending() == 0
    assert socket.sent == []


@pytest.mark.asyncio
async def test_status_change_reaches_applicant(
    client: AsyncClient, dispatcher, connections, factory
):
    clinic = await factory.create_user("clinic")
    nurse = await factory.create_user("staff")
    job = await factory.create_job(clinic, title="ICU Nurse")
    application = await factory.create_application(job, nurse)
    socket = FakeSocket()
    await connections.connect(nurse.id, socket)

    resp = await client.put(
        f"/api/v1/job-postings/applications/{application.id}/status",
        json={"status": "accepted"},
        headers=factory.headers(clinic),
    )
    assert resp.status_code == 200

    # the write is committed before anything is pushed
    assert socket.sent == []
    assert await dispatcher.dispatch_pending() == 1

    pushed = socket.sent[0]["notification"]
    assert pushed["related_application_id"] == application.id
    assert pushed["message"] == 'Your application for "ICU Nurse" is now accepted.'
