"""
Notification API routes and the live push socket
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import AuthenticationException
from app.core.policy import Action, require
from app.core.response import DictResponse, ResponseModel, success_response
from app.core.security import resolve_user
from app.crud import notification_crud
from app.models import MarkReadRequest, NotificationResponse, User

router = APIRouter()
ws_router = APIRouter()


@router.get("", summary="Caller's notifications", response_model=ResponseModel[List[NotificationResponse]])
async def list_notifications(
    unread: bool = Query(False, description="Only unread ones"),
    user: User = Depends(require(Action.NOTIFICATION_READ)),
    db: AsyncSession = Depends(get_db),
):
    items = await notification_crud.get_by_user(db, user.id, unread_only=unread)
    return success_response(
        data=[NotificationResponse.model_validate(n).model_dump() for n in items]
    )


@router.post("/mark-read", summary="Mark notifications read", response_model=DictResponse)
async def mark_read(
    data: MarkReadRequest,
    user: User = Depends(require(Action.NOTIFICATION_READ)),
    db: AsyncSession = Depends(get_db),
):
    """
    Ids that belong to someone else are ignored
    """
    updated = await notification_crud.mark_read(db, user.id, data.ids)
    await db.commit()
    return success_response(data={"updated": updated}, message="Notifications marked as read")


@ws_router.websocket("/notifications")
async def notification_socket(websocket: WebSocket, token: Optional[str] = Query(None)):
    """
    Live notifications

    Connect with `?token=<bearer token>`. Undelivered notifications are
    pushed right after the connection opens, new ones as they are written:

        {"type": "new_notification", "notification": {...}}
    """
    state = websocket.app.state
    if not token:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    try:
        async with state.database.session() as db:
            user = await resolve_user(db, token)
    except AuthenticationException as e:
        logger.warning(f"WebSocket rejected: {e.message}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await state.connections.connect(user.id, websocket)
    outbox = getattr(state, "outbox", None)
    if outbox is not None:
        outbox.wake()

    try:
        while True:
            # clients only send keepalives
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.debug(f"WebSocket closed by client: user={user.id}")
    finally:
        state.connections.disconnect(user.id, websocket)
