"""
User API routes
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import ConflictException, NotFoundException
from app.core.policy import Action, require
from app.core.response import ResponseModel, success_response
from app.core.security import get_current_user
from app.crud import user_crud
from app.models import ApprovalRequest, User, UserCreate, UserResponse, UserRole

auth_router = APIRouter()
admin_router = APIRouter()


def user_out(user: User) -> dict:
    return UserResponse.model_validate(user).model_dump()


@auth_router.get("/me", summary="Current user", response_model=ResponseModel[UserResponse])
async def me(user: User = Depends(get_current_user)):
    return success_response(data=user_out(user))


@admin_router.get("", summary="List users", response_model=ResponseModel[List[UserResponse]])
async def list_users(
    role: Optional[UserRole] = Query(None),
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    user: User = Depends(require(Action.USER_ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    if role is not None:
        users = await user_crud.get_by_role(db, role.value, skip=skip, limit=limit)
    else:
        users = await user_crud.get_multi(db, skip=skip, limit=limit)
    return success_response(data=[user_out(u) for u in users])


@admin_router.post(
    "",
    status_code=201,
    summary="Create a user",
    response_model=ResponseModel[UserResponse],
)
async def create_user(
    data: UserCreate,
    user: User = Depends(require(Action.USER_ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """
    Email is unique per role
    """
    if await user_crud.get_by_email_and_role(db, data.email, data.role):
        raise ConflictException("A user with this email and role already exists")

    created = await user_crud.create_user(db, obj_in=data)
    await db.commit()
    logger.info(f"User created: {created.id} ({created.role}) by {user.id}")
    return success_response(data=user_out(created), message="User created", code=201)


@admin_router.patch(
    "/{user_id}/approval",
    summary="Approve or decline an account",
    response_model=ResponseModel[UserResponse],
)
async def set_approval(
    user_id: str,
    data: ApprovalRequest,
    user: User = Depends(require(Action.USER_ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    target = await user_crud.get(db, user_id)
    if not target:
        raise NotFoundException("User not found")

    target.is_approved = data.approved
    target.declined = not data.approved
    await db.commit()
    logger.info(f"User {user_id} {'approved' if data.approved else 'declined'} by {user.id}")
    return success_response(data=user_out(target))
