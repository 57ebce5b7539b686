"""
Treatment catalog API routes

`/treatments` is the public catalog, `/admin/treatments` maintains it and
`/staff/doctor-treatments` is the subset each doctor offers.
"""
from typing import List, Optional, Tuple
from fastapi import APIRouter, Depends
from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import flag_modified

from app.core.database import UnitOfWork, get_db
from app.core.exceptions import ConflictException, NotFoundException, ValidationException
from app.core.policy import Action, policy, require
from app.core.response import DictResponse, ResponseModel, success_response
from app.crud import doctor_treatment_crud, treatment_crud
from app.models import (
    DoctorTreatment,
    DoctorTreatmentCreate,
    DoctorTreatmentResponse,
    SubcategoryIn,
    Treatment,
    TreatmentCreate,
    TreatmentResponse,
    User,
    slugify,
)

router = APIRouter()
admin_router = APIRouter()
staff_router = APIRouter()


def subcategory_dict(sub: SubcategoryIn) -> dict:
    return {"name": sub.name, "slug": slugify(sub.name), "price": sub.price}


def doctor_treatment_out(doc: DoctorTreatment, treatment: Optional[Treatment]) -> dict:
    """Merge a doctor's selection with its catalog entry"""
    selected = list(doc.subcategory_ids or [])
    available = treatment.subcategories if treatment else []
    subcategories = [
        {
            "name": sub.get("name"),
            "slug": sub.get("slug") or sub.get("name"),
            "price": sub.get("price"),
        }
        for sub in available
        if (sub.get("slug") or sub.get("name")) in selected
    ]
    return DoctorTreatmentResponse(
        id=doc.id,
        treatment_id=doc.treatment_id,
        treatment_name=treatment.name if treatment else "Unknown treatment",
        subcategory_ids=selected,
        subcategories=subcategories,
        price=doc.price,
    ).model_dump()


def format_doctor_treatments(rows: List[Tuple[DoctorTreatment, Optional[Treatment]]]) -> List[dict]:
    return [doctor_treatment_out(doc, treatment) for doc, treatment in rows]


# ==================== Public catalog ====================

@router.get("", summary="Treatment catalog", response_model=ResponseModel[List[TreatmentResponse]])
async def list_treatments(db: AsyncSession = Depends(get_db)):
    treatments = await treatment_crud.get_all(db)
    return success_response(
        data=[TreatmentResponse.model_validate(t).model_dump() for t in treatments]
    )


# ==================== Admin ====================

@admin_router.post(
    "",
    status_code=201,
    summary="Add a treatment",
    response_model=ResponseModel[TreatmentResponse],
)
async def create_treatment(
    data: TreatmentCreate,
    user: User = Depends(require(Action.TREATMENT_ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    if await treatment_crud.get_by_name(db, data.name):
        raise ConflictException("Treatment already exists")

    try:
        async with UnitOfWork(db):
            treatment = await treatment_crud.create(
                db,
                obj_in={
                    "name": data.name,
                    "slug": await treatment_crud.unique_slug(db, data.name),
                    "subcategories": [subcategory_dict(s) for s in data.subcategories],
                },
            )
    except IntegrityError as e:
        # name or slug taken by a concurrent request
        logger.warning(f"Duplicate treatment rejected by constraint: {e.orig}")
        raise ConflictException("Treatment already exists") from e

    logger.info(f"Treatment created: {treatment.slug}")
    return success_response(
        data=TreatmentResponse.model_validate(treatment).model_dump(),
        message="Treatment added",
        code=201,
    )


@admin_router.post(
    "/{treatment_id}/subcategories",
    status_code=201,
    summary="Add a subcategory to a treatment",
    response_model=ResponseModel[TreatmentResponse],
)
async def add_subcategory(
    treatment_id: str,
    data: SubcategoryIn,
    user: User = Depends(require(Action.TREATMENT_ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    treatment = await treatment_crud.get(db, treatment_id)
    if not treatment:
        raise NotFoundException("Treatment not found")

    entry = subcategory_dict(data)
    if any(s.get("slug") == entry["slug"] for s in treatment.subcategories or []):
        raise ConflictException("Subcategory already exists")

    treatment.subcategories = list(treatment.subcategories or []) + [entry]
    flag_modified(treatment, "subcategories")
    await db.commit()
    return success_response(
        data=TreatmentResponse.model_validate(treatment).model_dump(),
        message="Subcategory added",
        code=201,
    )


@admin_router.delete("/{treatment_id}", summary="Delete a treatment", response_model=DictResponse)
async def delete_treatment(
    treatment_id: str,
    user: User = Depends(require(Action.TREATMENT_ADMIN)),
    db: AsyncSession = Depends(get_db),
):
    """
    Doctor selections of the treatment are removed with it
    """
    async with UnitOfWork(db):
        treatment = await treatment_crud.get(db, treatment_id)
        if not treatment:
            raise NotFoundException("Treatment not found")
        selections_deleted = await doctor_treatment_crud.delete_for_treatment(db, treatment_id)
        await treatment_crud.delete_by_ids(db, [treatment_id])

    logger.info(f"Treatment {treatment_id} deleted with {selections_deleted} doctor selections")
    return success_response(
        data={"treatment_id": treatment_id, "doctor_treatments_deleted": selections_deleted},
        message="Treatment deleted",
    )


# ==================== Doctor selections ====================

@staff_router.get(
    "",
    summary="Treatments the caller offers",
    response_model=ResponseModel[List[DoctorTreatmentResponse]],
)
async def my_treatments(
    user: User = Depends(require(Action.DOCTOR_TREATMENT_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    rows = await doctor_treatment_crud.get_for_doctor(db, user.id)
    return success_response(data=format_doctor_treatments(rows))


@staff_router.post(
    "",
    summary="Offer a treatment or update the selection",
    response_model=ResponseModel[List[DoctorTreatmentResponse]],
)
async def upsert_treatment(
    data: DoctorTreatmentCreate,
    user: User = Depends(require(Action.DOCTOR_TREATMENT_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    """
    Selecting an already offered treatment replaces its subcategories and
    price. Returns the caller's full list.
    """
    treatment = await treatment_crud.get(db, data.treatment_id)
    if not treatment:
        raise NotFoundException("Treatment not found")

    known = {s.get("slug") or s.get("name") for s in treatment.subcategories or []}
    unknown = [s for s in data.subcategory_ids if s not in known]
    if unknown:
        raise ValidationException(f"Unknown subcategories: {', '.join(unknown)}")

    try:
        async with UnitOfWork(db):
            existing = await doctor_treatment_crud.get_pair(db, user.id, treatment.id)
            if existing:
                existing.subcategory_ids = list(data.subcategory_ids)
                existing.price = data.price
                flag_modified(existing, "subcategory_ids")
            else:
                await doctor_treatment_crud.create(
                    db,
                    obj_in={
                        "doctor_id": user.id,
                        "treatment_id": treatment.id,
                        "subcategory_ids": list(data.subcategory_ids),
                        "price": data.price,
                    },
                )
    except IntegrityError as e:
        # the same selection was saved by a concurrent request
        logger.warning(f"Duplicate doctor treatment rejected by constraint: {e.orig}")
        raise ConflictException("Treatment selection changed, please retry") from e

    rows = await doctor_treatment_crud.get_for_doctor(db, user.id)
    return success_response(data=format_doctor_treatments(rows), message="Treatment saved")


@staff_router.delete(
    "/{doctor_treatment_id}",
    summary="Stop offering a treatment",
    response_model=ResponseModel[List[DoctorTreatmentResponse]],
)
async def remove_treatment(
    doctor_treatment_id: str,
    user: User = Depends(require(Action.DOCTOR_TREATMENT_MANAGE)),
    db: AsyncSession = Depends(get_db),
):
    doc = await doctor_treatment_crud.get(db, doctor_treatment_id)
    if not doc:
        raise NotFoundException("Treatment selection not found")
    policy.enforce(user, Action.DOCTOR_TREATMENT_MANAGE, doc)

    await doctor_treatment_crud.delete(db, id=doctor_treatment_id)
    await db.commit()

    rows = await doctor_treatment_crud.get_for_doctor(db, user.id)
    return success_response(data=format_doctor_treatments(rows), message="Treatment removed")
