"""
Prescription request and chat API routes
"""
from typing import List
from fastapi import APIRouter, Depends, Request
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import UnitOfWork, get_db
from app.core.exceptions import NotFoundException
from app.core.policy import Action, ChatMessageContext, policy, require
from app.core.response import DictResponse, ResponseModel, success_response
from app.crud import chat_crud, prescription_crud, user_crud
from app.models import (
    Chat,
    ChatMessageCreate,
    ChatResponse,
    NotificationType,
    PrescriptionRequest,
    PrescriptionRequestCreate,
    PrescriptionRequestResponse,
    PrescriptionStatus,
    User,
    UserRole,
)
from app.services import queue_notification
from .deps import wake_outbox

router = APIRouter()
chat_router = APIRouter()


async def chats_out(db: AsyncSession, chats: List[Chat]) -> List[dict]:
    """Chats with participant names and the health issue attached"""
    user_ids = {c.user_id for c in chats} | {c.doctor_id for c in chats}
    names = {u.id: u.name for u in await user_crud.get_by_ids(db, list(user_ids))}
    requests = {
        p.id: p
        for p in await prescription_crud.get_by_ids(
            db, [c.prescription_request_id for c in chats if c.prescription_request_id]
        )
    }

    items = []
    for chat in chats:
        item = ChatResponse.model_validate(chat)
        item.user_name = names.get(chat.user_id)
        item.doctor_name = names.get(chat.doctor_id)
        request = requests.get(chat.prescription_request_id)
        item.health_issue = request.health_issue if request else None
        items.append(item.model_dump())
    return items


# ==================== Prescription requests ====================

@router.post(
    "",
    status_code=201,
    summary="Ask a doctor for a prescription",
    response_model=DictResponse,
)
async def create_prescription_request(
    data: PrescriptionRequestCreate,
    user: User = Depends(require(Action.PRESCRIPTION_REQUEST)),
    db: AsyncSession = Depends(get_db),
):
    """
    Opens the chat between the requester and the doctor in the same
    transaction
    """
    doctor = await user_crud.get(db, data.doctor_id)
    if doctor is None or doctor.role != UserRole.DOCTOR.value:
        raise NotFoundException("Doctor not found")

    async with UnitOfWork(db):
        request = PrescriptionRequest(
            user_id=user.id,
            doctor_id=doctor.id,
            health_issue=data.health_issue,
            symptoms=data.symptoms,
        )
        db.add(request)
        await db.flush()
        chat = Chat(prescription_request_id=request.id, user_id=user.id, doctor_id=doctor.id)
        db.add(chat)

    logger.info(f"Prescription request {request.id} from {user.id} to doctor {doctor.id}")
    return success_response(
        data={
            "prescription": PrescriptionRequestResponse.model_validate(request).model_dump(),
            "chat_id": chat.id,
        },
        message="Prescription request created",
        code=201,
    )


@router.get(
    "",
    summary="Caller's prescription requests",
    response_model=ResponseModel[List[PrescriptionRequestResponse]],
)
async def list_prescription_requests(
    user: User = Depends(require(Action.PRESCRIPTION_VIEW)),
    db: AsyncSession = Depends(get_db),
):
    items = await prescription_crud.get_for_participant(db, user.id)
    return success_response(
        data=[PrescriptionRequestResponse.model_validate(p).model_dump() for p in items]
    )


@router.delete("/{prescription_id}", summary="Delete a prescription request", response_model=DictResponse)
async def delete_prescription_request(
    prescription_id: str,
    user: User = Depends(require(Action.PRESCRIPTION_DELETE)),
    db: AsyncSession = Depends(get_db),
):
    """
    Requester or assigned doctor only; the chat goes with it
    """
    async with UnitOfWork(db):
        request = await prescription_crud.get(db, prescription_id)
        if request is None:
            raise NotFoundException("Prescription not found")
        policy.enforce(user, Action.PRESCRIPTION_DELETE, request)

        chats_deleted = await chat_crud.delete_by_prescription(db, prescription_id)
        await prescription_crud.delete_by_ids(db, [prescription_id])

    logger.info(f"Prescription request {prescription_id} deleted by {user.id}")
    return success_response(
        data={"prescription_id": prescription_id, "chats_deleted": chats_deleted},
        message="Prescription deleted successfully",
    )


# ==================== Chat ====================

@chat_router.get("/user-chats", summary="Chats of a patient", response_model=ResponseModel[List[ChatResponse]])
async def user_chats(
    user: User = Depends(require(Action.CHAT_USER_HISTORY)),
    db: AsyncSession = Depends(get_db),
):
    chats = await chat_crud.get_active_for_user(db, user.id)
    return success_response(data=await chats_out(db, chats))


@chat_router.get("/doctor-chats", summary="Chats of a doctor", response_model=ResponseModel[List[ChatResponse]])
async def doctor_chats(
    user: User = Depends(require(Action.CHAT_DOCTOR_HISTORY)),
    db: AsyncSession = Depends(get_db),
):
    chats = await chat_crud.get_active_for_doctor(db, user.id)
    return success_response(data=await chats_out(db, chats))


@chat_router.post(
    "/{chat_id}/messages",
    status_code=201,
    summary="Send a chat message",
    response_model=DictResponse,
)
async def send_message(
    chat_id: str,
    data: ChatMessageCreate,
    request: Request,
    user: User = Depends(require(Action.CHAT_MESSAGE_SEND)),
    db: AsyncSession = Depends(get_db),
):
    """
    The other participant is notified. A doctor message carrying a
    prescription also records it on the request.
    """
    async with UnitOfWork(db):
        chat = await chat_crud.get(db, chat_id)
        if chat is None:
            raise NotFoundException("Chat not found")
        policy.enforce(user, Action.CHAT_MESSAGE_SEND, chat)

        message = chat.add_message(user.id, user.role, data.content, data.prescription)

        prescription_request = None
        if chat.prescription_request_id:
            prescription_request = await prescription_crud.get(db, chat.prescription_request_id)
        if prescription_request is not None and user.id == chat.doctor_id:
            if data.prescription:
                prescription_request.prescription = data.prescription
                prescription_request.status = PrescriptionStatus.COMPLETED.value
            elif prescription_request.status == PrescriptionStatus.PENDING.value:
                prescription_request.status = PrescriptionStatus.IN_PROGRESS.value

        recipient_id = chat.doctor_id if user.id == chat.user_id else chat.user_id
        queue_notification(
            db,
            user_id=recipient_id,
            message=f"New message from {user.display_name}",
            type=NotificationType.CHAT_REPLY,
        )

    wake_outbox(request)
    return success_response(data=message, message="Message sent", code=201)


@chat_router.delete(
    "/{chat_id}/messages/{message_id}",
    summary="Delete a chat message",
    response_model=DictResponse,
)
async def delete_message(
    chat_id: str,
    message_id: str,
    user: User = Depends(require(Action.CHAT_MESSAGE_DELETE)),
    db: AsyncSession = Depends(get_db),
):
    """
    The sender, or the doctor of the chat, may delete a message
    """
    chat = await chat_crud.get(db, chat_id)
    if chat is None:
        raise NotFoundException("Chat not found")
    message = chat.find_message(message_id)
    if message is None:
        raise NotFoundException("Message not found")
    policy.enforce(user, Action.CHAT_MESSAGE_DELETE, ChatMessageContext(chat, message))

    chat.remove_message(message_id)
    await db.commit()
    return success_response(data={"message_id": message_id}, message="Message deleted successfully")
