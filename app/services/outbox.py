"""
Notification outbox dispatcher

Notification rows are written in the same transaction as the change they
describe. This dispatcher pushes the undelivered ones to connected
WebSocket clients afterwards, so a failed push never undoes the write.

    writer:      INSERT notification ... COMMIT; dispatcher.wake()
    dispatcher:  SELECT undelivered -> push -> delivered_at = now
"""
import asyncio
from typing import Optional

from loguru import logger

from app.core.config import Settings, settings as default_settings
from app.core.database import Database
from app.core.realtime import ConnectionManager
from app.crud import notification_crud
from app.models.base import utcnow


class OutboxDispatcher:
    """Delivers pending notifications to live sockets"""

    def __init__(
        self,
        database: Database,
        connections: ConnectionManager,
        settings: Settings = default_settings,
    ):
        self.database = database
        self.connections = connections
        self.max_attempts = settings.outbox_max_attempts
        self.poll_interval = settings.outbox_poll_interval
        self._wake = asyncio.Event()
        self._stopping = False
        self._task: Optional[asyncio.Task] = None

    async def dispatch_pending(self) -> int:
        """
        One delivery pass

        Only notifications whose user is connected are attempted; the rest
        wait for the user to connect. Returns the number delivered.
        """
        delivered = 0
        async with self.database.session() as session:
            pending = await notification_crud.get_undelivered(
                session, max_attempts=self.max_attempts
            )
            for notification in pending:
                if not self.connections.is_connected(notification.user_id):
                    continue

                sent = await self.connections.send_to_user(
                    notification.user_id, notification.to_push_payload()
                )
                if sent:
                    notification.delivered_at = utcnow()
                    notification.last_error = None
                    delivered += 1
                else:
                    notification.delivery_attempts += 1
                    notification.last_error = "No open socket accepted the push"
                    logger.warning(
                        f"Notification {notification.id} push failed "
                        f"(attempt {notification.delivery_attempts}/{self.max_attempts})"
                    )
            await session.commit()

        if delivered:
            logger.debug(f"Outbox delivered {delivered} notification(s)")
        return delivered

    def wake(self) -> None:
        """Ask the loop to run a pass now instead of at the next poll"""
        self._wake.set()

    async def run(self) -> None:
        logger.info("Outbox dispatcher started")
        while not self._stopping:
            self._wake.clear()
            try:
                await self.dispatch_pending()
            except Exception as e:
                logger.exception(f"Outbox dispatch pass failed: {e}")

            try:
                await asyncio.wait_for(self._wake.wait(), timeout=self.poll_interval)
            except asyncio.TimeoutError:
                pass
        logger.info("Outbox dispatcher stopped")

    def start(self) -> asyncio.Task:
        if self._task is None or self._task.done():
            self._stopping = False
            self._task = asyncio.create_task(self.run())
        return self._task

    async def stop(self) -> None:
        self._stopping = True
        self._wake.set()
        if self._task is not None:
            try:
                await asyncio.wait_for(self._task, timeout=self.poll_interval + 1)
            except asyncio.TimeoutError:
                # wait_for already cancelled the task
                logger.warning("Outbox dispatcher did not stop in time, cancelled")
            self._task = None
