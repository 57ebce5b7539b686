"""
Contract API routes
"""
from typing import List
from fastapi import APIRouter, Depends
from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.exceptions import NotFoundException, ValidationException
from app.core.policy import Action, require
from app.core.response import DictResponse, ResponseModel, success_response
from app.crud import contract_crud, user_crud
from app.models import ContractCreate, ContractResponse, User

router = APIRouter()
admin_router = APIRouter()


def contract_out(contract) -> dict:
    return ContractResponse.model_validate(contract).model_dump()


@router.get("/mine", summary="Contracts assigned to the caller", response_model=ResponseModel[List[ContractResponse]])
async def my_contracts(
    user: User = Depends(require(Action.CONTRACT_VIEW_OWN)),
    db: AsyncSession = Depends(get_db),
):
    contracts = await contract_crud.get_by_responsible(db, user.id)
    return success_response(data=[contract_out(c) for c in contracts])


@admin_router.get("", summary="All contracts", response_model=ResponseModel[List[ContractResponse]])
async def list_contracts(
    user: User = Depends(require(Action.CONTRACT_ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    contracts = await contract_crud.get_multi(db, limit=500)
    return success_response(data=[contract_out(c) for c in contracts])


@admin_router.post(
    "",
    status_code=201,
    summary="Create a contract",
    response_model=ResponseModel[ContractResponse],
)
async def create_contract(
    data: ContractCreate,
    user: User = Depends(require(Action.CONTRACT_ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    if data.start_date and data.end_date and data.end_date < data.start_date:
        raise ValidationException("end_date must not be before start_date")
    if not await user_crud.get(db, data.responsible_person_id):
        raise NotFoundException("Responsible person not found")

    contract = await contract_crud.create(db, obj_in=data)
    await db.commit()
    logger.info(f"Contract {contract.id} assigned to {contract.responsible_person_id}")
    return success_response(data=contract_out(contract), message="Contract created", code=201)


@admin_router.delete("/{contract_id}", summary="Delete a contract", response_model=DictResponse)
async def delete_contract(
    contract_id: str,
    user: User = Depends(require(Action.CONTRACT_ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    if not await contract_crud.delete(db, id=contract_id):
        raise NotFoundException("Contract not found")
    await db.commit()
    return success_response(data={"contract_id": contract_id}, message="Contract deleted")
