import logging
import math
from typing import Any, Dict, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from core.errors import Conflict, Forbidden, NotFound, ValidationFailed
from core.permissions import filter_fields
from model.common import generate_uid
from model.doctor_model import Doctors
from model.doctor_schema import DoctorCreate, DoctorOut, DoctorUpdate
from model.schema_base import apply_updates, normalize_keys, validate_update
from model.user_model import Users

logger = logging.getLogger(__name__)

# unrated doctors go last on every backend
LIST_ORDER = (Doctors.rating.desc().nulls_last(), Doctors.total_reviews.desc().nulls_last())


def _serialize(doctor: Doctors) -> dict:
    return DoctorOut.model_validate(doctor).model_dump(by_alias=True, mode="json")


def _get_doctor_or_404(db: Session, uid: str) -> Doctors:
    doctor = db.query(Doctors).filter(Doctors.uid == uid).first()
    if not doctor:
        raise NotFound("Doctor not found")
    return doctor


def _license_taken(db: Session, license_number: str, exclude_id: Optional[int] = None) -> bool:
    query = db.query(Doctors).filter(Doctors.license_number == license_number)
    if exclude_id is not None:
        query = query.filter(Doctors.id != exclude_id)
    return query.first() is not None


# ---------------- List (public) ----------------
def list_doctors(db: Session, search: Optional[str] = None, specialization: Optional[str] = None,
                 page: int = 1, limit: int = 10):
    query = db.query(Doctors).join(Users, Doctors.user_id == Users.id)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            Users.first_name.ilike(pattern),
            Users.last_name.ilike(pattern),
            Users.email.ilike(pattern),
        ))
    doctors = query.order_by(*LIST_ORDER).all()

    # specialization is a JSON list, matched here to stay portable across backends
    if specialization:
        wanted = specialization.lower()
        doctors = [d for d in doctors if any(s.lower() == wanted for s in d.specialization or [])]

    total = len(doctors)
    start = (page - 1) * limit
    return {
        "doctors": [_serialize(d) for d in doctors[start:start + limit]],
        "pagination": {"page": page, "limit": limit, "total": total, "pages": math.ceil(total / limit)},
    }


# ---------------- Create ----------------
def create_doctor(db: Session, user: Users, request: DoctorCreate):
    if user.role == "admin":
        if not request.user_id:
            raise ValidationFailed("userId is required when creating as admin")
        target = db.query(Users).filter(Users.uid == request.user_id).first()
    else:
        target = user
    if not target:
        raise NotFound("User not found")
    if target.role != "doctor":
        raise ValidationFailed("User must have doctor role")
    if target.doctor:
        raise Conflict("Doctor profile already exists for this user")
    if _license_taken(db, request.license_number):
        raise Conflict("License number already exists")

    data = request.model_dump(exclude={"user_id"}, mode="json")
    doctor = Doctors(uid=generate_uid("doctor"), user_id=target.id, is_accepting_new_patients=True, **data)
    db.add(doctor)
    db.commit()
    db.refresh(doctor)
    logger.info("Doctor profile %s created for user %s", doctor.uid, target.uid)
    return {"message": "Doctor profile created successfully", "doctor": _serialize(doctor)}


# ---------------- Get / Update / Delete ----------------
def get_doctor(db: Session, uid: str):
    return {"doctor": _serialize(_get_doctor_or_404(db, uid))}


def update_doctor(db: Session, user: Users, uid: str, body: Dict[str, Any]):
    doctor = _get_doctor_or_404(db, uid)
    if user.role == "patient":
        raise Forbidden("Access denied")
    if user.role == "doctor" and doctor.user_id != user.id:
        raise Forbidden("Access denied")

    allowed = filter_fields("doctor", user.role, normalize_keys(body))
    update = validate_update(DoctorUpdate, allowed, "doctor update")

    if update.license_number and update.license_number != doctor.license_number:
        if _license_taken(db, update.license_number, exclude_id=doctor.id):
            raise Conflict("License number already exists")

    apply_updates(doctor, update)
    db.commit()
    db.refresh(doctor)
    return {"message": "Doctor profile updated successfully", "doctor": _serialize(doctor)}


def delete_doctor(db: Session, uid: str):
    doctor = _get_doctor_or_404(db, uid)
    summary = {"uid": doctor.uid, "userId": doctor.user.uid, "licenseNumber": doctor.license_number}
    db.delete(doctor)
    db.commit()
    logger.info("Doctor profile %s deleted", uid)
    return {"message": "Doctor profile deleted successfully", "doctor": summary}
