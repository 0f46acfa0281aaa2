import logging
import math
from typing import Any, Dict, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from core.errors import Conflict, Forbidden, NotFound, ValidationFailed
from core.permissions import filter_fields
from model.common import generate_uid
from model.patient_model import Patients, BLOOD_TYPES, SMOKING_STATUSES, ALCOHOL_LEVELS
from model.patient_schema import PatientCreate, PatientOut, PatientUpdate
from model.schema_base import apply_updates, normalize_keys, validate_update
from model.user_model import Users

logger = logging.getLogger(__name__)


def _serialize(patient: Patients) -> dict:
    return PatientOut.model_validate(patient).model_dump(by_alias=True, mode="json")


def _check_enums(payload: Dict[str, Any]):
    if payload.get("blood_type") and payload["blood_type"] not in BLOOD_TYPES:
        raise ValidationFailed("Invalid blood type")
    if payload.get("smoking_status") and payload["smoking_status"] not in SMOKING_STATUSES:
        raise ValidationFailed("Invalid smoking status")
    if payload.get("alcohol_consumption") and payload["alcohol_consumption"] not in ALCOHOL_LEVELS:
        raise ValidationFailed("Invalid alcohol consumption value")


def _get_patient_or_404(db: Session, uid: str) -> Patients:
    patient = db.query(Patients).filter(Patients.uid == uid).first()
    if not patient:
        raise NotFound("Patient not found")
    return patient


# ---------------- List ----------------
def list_patients(db: Session, user: Users, search: Optional[str] = None, page: int = 1, limit: int = 10):
    query = db.query(Patients).join(Users, Patients.user_id == Users.id)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            Users.first_name.ilike(pattern),
            Users.last_name.ilike(pattern),
            Users.email.ilike(pattern),
        ))
    if user.role == "patient":
        query = query.filter(Patients.user_id == user.id)

    total = query.count()
    patients = query.order_by(Patients.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    return {
        "patients": [_serialize(p) for p in patients],
        "pagination": {"page": page, "limit": limit, "total": total, "pages": math.ceil(total / limit)},
    }


# ---------------- Create (admin / doctor) ----------------
def create_patient(db: Session, request: PatientCreate):
    target = db.query(Users).filter(Users.uid == request.user_id).first()
    if not target:
        raise NotFound("User not found")
    if target.role != "patient":
        raise ValidationFailed("User must have patient role")
    if target.patient:
        raise Conflict("Patient profile already exists for this user")

    patient = Patients(uid=generate_uid("patient"), user_id=target.id)
    apply_updates(patient, PatientUpdate.model_validate(request.model_dump(exclude={"user_id"}, exclude_unset=True)))
    if not patient.preferred_language:
        patient.preferred_language = "English"
    db.add(patient)
    db.commit()
    db.refresh(patient)
    logger.info("Patient profile %s created for user %s", patient.uid, target.uid)
    return {"message": "Patient profile created successfully", "patient": _serialize(patient)}


# ---------------- Get / Update / Delete ----------------
def get_patient(db: Session, user: Users, uid: str):
    patient = _get_patient_or_404(db, uid)
    if user.role == "patient" and patient.user_id != user.id:
        raise Forbidden("Access denied")
    return {"patient": _serialize(patient)}


def update_patient(db: Session, user: Users, uid: str, body: Dict[str, Any]):
    patient = _get_patient_or_404(db, uid)
    if user.role == "patient" and patient.user_id != user.id:
        raise Forbidden("Access denied")

    allowed = filter_fields("patient", user.role, normalize_keys(body))
    _check_enums(allowed)
    update = validate_update(PatientUpdate, allowed, "patient update")
    apply_updates(patient, update)
    db.commit()
    db.refresh(patient)
    return {"message": "Patient profile updated successfully", "patient": _serialize(patient)}


def delete_patient(db: Session, uid: str):
    patient = _get_patient_or_404(db, uid)
    summary = {"uid": patient.uid, "userId": patient.user.uid}
    db.delete(patient)
    db.commit()
    logger.info("Patient profile %s deleted", uid)
    return {"message": "Patient profile deleted successfully", "patient": summary}
