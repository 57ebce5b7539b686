"""
Patient registration bookkeeping

Pure functions over a `PatientRegistration`; the caller commits.
Every update appends a snapshot to `payment_history`.
"""
from typing import Optional

from sqlalchemy.orm.attributes import flag_modified

from app.core.exceptions import ValidationException
from app.models import (
    CLAIM_RELEASE_CHECKLIST,
    DOCTOR_EDITABLE_FIELDS,
    ClaimAction,
    ClaimStatus,
    DoctorPatientUpdate,
    PatientRecordUpdate,
    PatientRegistration,
    UpdateType,
    User,
    utcnow,
)

REJECTED = "Rejected"


def outstanding(amount: float, paid: float, advance: float) -> float:
    return max(0.0, float(amount) - (float(paid) + float(advance)))


def _snapshot(patient: PatientRegistration, **extra) -> None:
    entry = {
        "amount": patient.amount,
        "paid": patient.paid,
        "advance": patient.advance,
        "pending": patient.pending,
        "payment_method": patient.payment_method,
        "updated_at": utcnow().isoformat(),
    }
    entry.update(extra)
    patient.payment_history = list(patient.payment_history or []) + [entry]
    flag_modified(patient, "payment_history")


def apply_payment(
    patient: PatientRegistration,
    *,
    amount: Optional[float] = None,
    paying: Optional[float] = None,
    payment_method: Optional[str] = None,
) -> None:
    """
    Add `paying` to what was already paid

    Overpayment becomes advance, the rest stays pending.
    """
    amount = float(amount) if amount is not None else float(patient.amount or 0)
    paying = float(paying or 0)
    new_paid = float(patient.paid or 0) + paying

    patient.amount = amount
    patient.paid = new_paid
    patient.advance = max(0.0, new_paid - amount)
    patient.pending = max(0.0, amount - new_paid)
    patient.payment_method = payment_method or patient.payment_method or ""
    _snapshot(patient, paying=paying)


def apply_status(
    patient: PatientRegistration,
    *,
    status: Optional[str] = None,
    rejection_note: Optional[str] = None,
) -> None:
    """The rejection note is only kept while the status is Rejected"""
    if status is not None:
        patient.status = status
    if patient.status == REJECTED:
        if rejection_note is not None:
            patient.rejection_note = rejection_note
    else:
        patient.rejection_note = None
    patient.pending = outstanding(patient.amount, patient.paid, patient.advance)
    _snapshot(patient, status=patient.status, rejection_note=patient.rejection_note)


def apply_claim_fields(patient: PatientRegistration, data: PatientRecordUpdate) -> None:
    if data.advance_claim_status is not None:
        patient.advance_claim_status = ClaimStatus(data.advance_claim_status).value
    if data.advance_claim_cancellation_remark is not None:
        patient.advance_claim_cancellation_remark = data.advance_claim_cancellation_remark
    if data.advance_claim_release_date is not None:
        patient.advance_claim_release_date = data.advance_claim_release_date
    if data.advance_claim_released_by is not None:
        patient.advance_claim_released_by = data.advance_claim_released_by
    patient.pending = outstanding(patient.amount, patient.paid, patient.advance)
    _snapshot(
        patient,
        advance_claim_status=patient.advance_claim_status,
        advance_claim_cancellation_remark=patient.advance_claim_cancellation_remark,
    )


def apply_record_update(patient: PatientRegistration, data: PatientRecordUpdate) -> str:
    """Dispatch on `update_type`, returns a human readable summary"""
    update_type = UpdateType(data.update_type)
    if update_type is UpdateType.PAYMENT:
        apply_payment(
            patient,
            amount=data.amount,
            paying=data.paying,
            payment_method=data.payment_method,
        )
        return "Payment updated"
    if update_type is UpdateType.STATUS:
        apply_status(patient, status=data.status, rejection_note=data.rejection_note)
        return "Status updated"
    apply_claim_fields(patient, data)
    return "Advance claim updated"


def released_by(user: User) -> str:
    return user.name or user.email or user.id


def apply_claim_action(
    patient: PatientRegistration,
    action: ClaimAction,
    user: User,
    checklist: Optional[dict] = None,
) -> str:
    """
    Release (all checklist items confirmed) or cancel an advance claim

    Raises:
        ValidationException: release without a complete checklist
    """
    action = ClaimAction(action)
    if action is ClaimAction.RELEASE:
        if not isinstance(checklist, dict):
            raise ValidationException("Checklist object required for release")
        missed = [key for key in CLAIM_RELEASE_CHECKLIST if not checklist.get(key)]
        if missed:
            raise ValidationException(f"Checklist incomplete. Missing: {', '.join(missed)}")

        patient.advance_claim_status = ClaimStatus.RELEASED.value
        patient.advance_claim_release_date = utcnow()
        patient.advance_claim_released_by = released_by(user)
        return "Claim released"

    patient.advance_claim_status = ClaimStatus.CANCELLED.value
    patient.advance_claim_release_date = None
    patient.advance_claim_released_by = None
    return "Claim cancelled"


def apply_doctor_approval(
    patient: PatientRegistration,
    data: DoctorPatientUpdate,
    user: User,
) -> None:
    """Write the whitelisted fields and mark the claim approved by the doctor"""
    for field, value in data.model_dump(exclude_unset=True, exclude_none=True).items():
        if field in DOCTOR_EDITABLE_FIELDS:
            setattr(patient, field, value)

    patient.advance_claim_status = ClaimStatus.APPROVED_BY_DOCTOR.value
    patient.advance_claim_release_date = utcnow()
    patient.advance_claim_released_by = released_by(user)
