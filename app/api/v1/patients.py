"""
Patient registration API routes

Staff side (`/staff/...`) registers visits and takes payments; the
doctor side (`/doctor/...`) looks records up by EMR number and approves
advance claims of assigned patients.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Query
from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import UnitOfWork, get_db
from app.core.exceptions import ConflictException, NotFoundException
from app.core.policy import Action, policy, require
from app.core.response import DictResponse, ResponseModel, success_response
from app.crud import patient_crud
from app.models import (
    ClaimActionRequest,
    ClaimStatus,
    DoctorPatientUpdate,
    PatientRecordUpdate,
    PatientRegistration,
    PatientRegistrationCreate,
    PatientRegistrationResponse,
    User,
)
from app.services.patients import (
    apply_claim_action,
    apply_doctor_approval,
    apply_record_update,
    outstanding,
)

staff_router = APIRouter()
doctor_router = APIRouter()


def patient_out(patient: PatientRegistration) -> dict:
    return PatientRegistrationResponse.model_validate(patient).model_dump()


async def _get_patient(db: AsyncSession, id: str) -> PatientRegistration:
    patient = await patient_crud.get(db, id)
    if not patient:
        raise NotFoundException("Patient not found")
    return patient


# ==================== Staff ====================

@staff_router.post(
    "/patient-registrations",
    status_code=201,
    summary="Register a patient visit",
    response_model=ResponseModel[PatientRegistrationResponse],
)
async def register_patient(
    data: PatientRegistrationCreate,
    user: User = Depends(require(Action.PATIENT_REGISTER)),
    db: AsyncSession = Depends(get_db),
):
    if await patient_crud.get_by_invoice(db, data.invoice_number):
        raise ConflictException("Invoice number already exists")

    values = data.model_dump()
    values["user_id"] = user.id
    values["pending"] = outstanding(data.amount, data.paid, data.advance)
    try:
        async with UnitOfWork(db):
            patient = await patient_crud.create(db, obj_in=values)
    except IntegrityError as e:
        # a concurrent registration took the invoice number
        logger.warning(f"Duplicate invoice rejected by constraint: {e.orig}")
        raise ConflictException("Invoice number already exists") from e

    logger.info(f"Patient registered: invoice={patient.invoice_number} by {user.id}")
    return success_response(
        data=patient_out(patient), message="Patient registered successfully", code=201
    )


@staff_router.get(
    "/patient-registrations",
    summary="Search patient registrations",
    response_model=ResponseModel[List[PatientRegistrationResponse]],
)
async def search_patients(
    emr_number: Optional[str] = Query(None),
    invoice_number: Optional[str] = Query(None),
    name: Optional[str] = Query(None, description="First or last name"),
    phone: Optional[str] = Query(None),
    claim_status: Optional[ClaimStatus] = Query(None),
    status: Optional[str] = Query(None),
    user: User = Depends(require(Action.PATIENT_SEARCH)),
    db: AsyncSession = Depends(get_db),
):
    """
    Latest 50 matches; text filters are case-insensitive partial matches
    """
    patients = await patient_crud.search(
        db,
        emr_number=emr_number,
        invoice_number=invoice_number,
        name=name,
        phone=phone,
        claim_status=claim_status.value if claim_status else None,
        status=status,
    )
    return success_response(data=[patient_out(p) for p in patients])


@staff_router.get(
    "/patient-registrations/{id}",
    summary="Patient registration detail",
    response_model=ResponseModel[PatientRegistrationResponse],
)
async def get_patient(
    id: str,
    user: User = Depends(require(Action.PATIENT_SEARCH)),
    db: AsyncSession = Depends(get_db),
):
    return success_response(data=patient_out(await _get_patient(db, id)))


@staff_router.put(
    "/patient-registrations/{id}",
    summary="Update payment, status or advance claim",
    response_model=ResponseModel[PatientRegistrationResponse],
)
async def update_patient_record(
    id: str,
    data: PatientRecordUpdate,
    user: User = Depends(require(Action.PATIENT_UPDATE)),
    db: AsyncSession = Depends(get_db),
):
    patient = await _get_patient(db, id)
    message = apply_record_update(patient, data)
    await db.commit()
    logger.info(f"Patient {id}: {message.lower()} by {user.id}")
    return success_response(data=patient_out(patient), message=message)


@staff_router.get(
    "/pending-claims",
    summary="Advance claims",
    response_model=ResponseModel[List[PatientRegistrationResponse]],
)
async def list_claims(
    claim_status: Optional[ClaimStatus] = Query(None),
    user: User = Depends(require(Action.CLAIM_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    patients = await patient_crud.search(
        db,
        claim_status=claim_status.value if claim_status else None,
        limit=500,
    )
    return success_response(data=[patient_out(p) for p in patients])


@staff_router.patch(
    "/pending-claims",
    summary="Release or cancel an advance claim",
    response_model=ResponseModel[PatientRegistrationResponse],
)
async def act_on_claim(
    data: ClaimActionRequest,
    user: User = Depends(require(Action.CLAIM_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    """
    `release` needs every checklist item set to true; `cancel` clears the
    release info
    """
    patient = await _get_patient(db, data.id)
    message = apply_claim_action(patient, data.action, user, data.checklist)
    await db.commit()
    logger.info(f"Claim {data.id}: {message.lower()} by {user.id}")
    return success_response(data=patient_out(patient), message=message)


# ==================== Doctor ====================

@doctor_router.get(
    "/patient-registration/{emr_number}",
    summary="Latest registration for an EMR number",
    response_model=DictResponse,
)
async def get_by_emr(
    emr_number: str,
    user: User = Depends(require(Action.PATIENT_VIEW)),
    db: AsyncSession = Depends(get_db),
):
    """
    Adds `total_advance_amount` (all visits of the EMR number) and
    `advance_only_amount` (this visit)
    """
    records = await patient_crud.get_by_emr(db, emr_number)
    if not records:
        raise NotFoundException("Patient not found")

    patient = records[0]
    data = patient_out(patient)
    data["total_advance_amount"] = sum(float(p.advance or 0) for p in records)
    data["advance_only_amount"] = max(0.0, float(patient.advance or 0))
    return success_response(data=data)


@doctor_router.put(
    "/update-patient/{id}",
    summary="Edit and approve an assigned patient",
    response_model=ResponseModel[PatientRegistrationResponse],
)
async def doctor_update_patient(
    id: str,
    data: DoctorPatientUpdate,
    user: User = Depends(require(Action.PATIENT_DOCTOR_APPROVE)),
    db: AsyncSession = Depends(get_db),
):
    patient = await _get_patient(db, id)
    policy.enforce(user, Action.PATIENT_DOCTOR_APPROVE, patient)

    apply_doctor_approval(patient, data, user)
    await db.commit()
    logger.info(f"Patient {id} approved by doctor {user.id}")
    return success_response(
        data=patient_out(patient), message="Patient updated and approved by doctor"
    )
