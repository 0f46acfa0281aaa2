import logging
import math
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from core.errors import Conflict, Forbidden, NotFound, ValidationFailed
from core.permissions import filter_fields
from core.scheduling import ACTIVE_STATUSES, clinic_now, find_conflict, is_slot_available, slot_bounds, to_clinic_time
from model.appointment_model import Appointment, APPOINTMENT_STATUSES, MAX_DURATION
from model.appointment_schema import AppointmentOut, AppointmentRequest, AppointmentUpdate
from model.common import generate_uid
from model.doctor_model import Doctors
from model.patient_model import Patients
from model.schema_base import apply_updates, normalize_keys, validate_update
from model.user_model import Users

logger = logging.getLogger(__name__)


def _serialize(appointment: Appointment) -> dict:
    return AppointmentOut.from_model(appointment).model_dump(by_alias=True, mode="json")


def _lock_doctor(db: Session, doctor_filter):
    # serialises check-then-write per doctor; SQLite ignores FOR UPDATE
    return db.query(Doctors).filter(doctor_filter).with_for_update().first()


def _can_access(appointment: Appointment, user: Users) -> bool:
    if user.role == "admin":
        return True
    if user.role == "patient":
        return user.patient is not None and appointment.patient_id == user.patient.id
    if user.role == "doctor":
        return user.doctor is not None and appointment.doctor_id == user.doctor.id
    return False


# ------------------------
# Conflict detection
# ------------------------
def has_conflict(db: Session, doctor_id: int, start: datetime, end: datetime,
                 exclude_appointment_id: Optional[str] = None) -> bool:
    """True when an active appointment of ``doctor_id`` overlaps ``[start, end)``."""
    # nothing can reach into the slot from earlier than the longest duration
    candidates = db.query(Appointment).filter(
        Appointment.doctor_id == doctor_id,
        Appointment.status.in_(ACTIVE_STATUSES),
        Appointment.appointment_date < end,
        Appointment.appointment_date >= start - timedelta(minutes=MAX_DURATION),
    ).all()
    return find_conflict(candidates, start, end, exclude_uid=exclude_appointment_id) is not None


# ------------------------
# 1️⃣ List appointments
# ------------------------
def list_appointments(db: Session, user: Users, status: Optional[str] = None, type: Optional[str] = None,
                      date_from: Optional[datetime] = None, date_to: Optional[datetime] = None,
                      page: int = 1, limit: int = 10):
    query = db.query(Appointment)

    if user.role == "patient":
        if not user.patient:
            return {"appointments": [], "pagination": {"page": page, "limit": limit, "total": 0, "pages": 0}}
        query = query.filter(Appointment.patient_id == user.patient.id)
    elif user.role == "doctor":
        if not user.doctor:
            return {"appointments": [], "pagination": {"page": page, "limit": limit, "total": 0, "pages": 0}}
        query = query.filter(Appointment.doctor_id == user.doctor.id)

    if status:
        query = query.filter(Appointment.status == status)
    if type:
        query = query.filter(Appointment.type == type)
    if date_from:
        query = query.filter(Appointment.appointment_date >= to_clinic_time(date_from))
    if date_to:
        query = query.filter(Appointment.appointment_date <= to_clinic_time(date_to))

    total = query.count()
    appointments = (
        query.order_by(Appointment.appointment_date.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return {
        "appointments": [_serialize(a) for a in appointments],
        "pagination": {"page": page, "limit": limit, "total": total, "pages": math.ceil(total / limit)},
    }


# ------------------------
# 2️⃣ Book a new appointment
# ------------------------
def book_appointment(db: Session, user: Users, request: AppointmentRequest):
    patient = user.patient
    if not patient:
        raise NotFound("Patient profile not found. Please complete your profile first.")

    doctor = _lock_doctor(db, Doctors.uid == request.doctor_id)
    if not doctor:
        raise NotFound("Doctor not found")
    if not doctor.is_accepting_new_patients:
        raise ValidationFailed("Doctor is not accepting new patients")

    start = to_clinic_time(request.appointment_date)
    if start <= clinic_now():
        raise ValidationFailed("Appointment date must be in the future")

    if not is_slot_available(doctor.availability, start, request.duration):
        raise ValidationFailed("Doctor is not available at this time")

    _, end = slot_bounds(start, request.duration)
    if has_conflict(db, doctor.id, start, end):
        raise Conflict("Time slot conflicts with existing appointment")

    appointment = Appointment(
        uid=generate_uid("appt"),
        patient_id=patient.id,
        doctor_id=doctor.id,
        appointment_date=start,
        duration=request.duration,
        type=request.type,
        status="scheduled",
        reason=request.reason,
        symptoms=request.symptoms or [],
        notes=request.notes,
        payment_status="pending",
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    logger.info("Appointment %s booked with doctor %s at %s", appointment.uid, doctor.uid, start.isoformat())

    return {"message": "Appointment booked successfully", "appointment": _serialize(appointment)}


# ------------------------
# 3️⃣ Get one appointment
# ------------------------
def get_appointment(db: Session, user: Users, appointment_uid: str):
    appointment = db.query(Appointment).filter(Appointment.uid == appointment_uid).first()
    if not appointment:
        raise NotFound("Appointment not found")
    if not _can_access(appointment, user):
        raise Forbidden("Access denied")
    return {"appointment": _serialize(appointment)}


# ------------------------
# 4️⃣ Update / cancel / reschedule
# ------------------------
def _reschedule(db: Session, appointment: Appointment, new_date: datetime):
    doctor = _lock_doctor(db, Doctors.id == appointment.doctor_id)

    if new_date <= clinic_now():
        raise ValidationFailed("New appointment date must be in the future")
    if not is_slot_available(doctor.availability, new_date, appointment.duration):
        raise ValidationFailed("Doctor is not available at the new time")

    _, end = slot_bounds(new_date, appointment.duration)
    if has_conflict(db, doctor.id, new_date, end, exclude_appointment_id=appointment.uid):
        raise Conflict("Time slot conflicts with existing appointment")

    appointment.rescheduled_from = appointment.uid
    appointment.rescheduled_from_date = appointment.appointment_date
    appointment.appointment_date = new_date
    logger.info("Appointment %s moved to %s", appointment.uid, new_date.isoformat())


def _parse_date(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        raise ValidationFailed("Invalid appointment date")


def update_appointment(db: Session, user: Users, appointment_uid: str, body: Dict[str, Any]):
    appointment = db.query(Appointment).filter(Appointment.uid == appointment_uid).first()
    if not appointment:
        raise NotFound("Appointment not found")
    if not _can_access(appointment, user):
        raise Forbidden("Access denied")

    payload = normalize_keys(body)

    new_status = payload.get("status")
    if new_status is not None:
        if new_status not in APPOINTMENT_STATUSES:
            raise ValidationFailed("Invalid appointment status")
        if user.role not in ("doctor", "admin"):
            raise Forbidden("Only doctors can update appointment status")
        if new_status == "cancelled" and appointment.status != "cancelled":
            appointment.cancelled_by_id = user.id
            appointment.cancellation_reason = payload.get("cancellation_reason") or "Cancelled by user"

    if payload.get("appointment_date") is not None:
        new_date = to_clinic_time(_parse_date(payload["appointment_date"]))
        if new_date != appointment.appointment_date:
            _reschedule(db, appointment, new_date)

    allowed = filter_fields("appointment", user.role, payload)
    update = validate_update(AppointmentUpdate, allowed, "appointment update")
    apply_updates(appointment, update)

    db.commit()
    db.refresh(appointment)
    return {"message": "Appointment updated successfully", "appointment": _serialize(appointment)}


# ------------------------
# 5️⃣ Delete (admin)
# ------------------------
def delete_appointment(db: Session, appointment_uid: str):
    appointment = db.query(Appointment).filter(Appointment.uid == appointment_uid).first()
    if not appointment:
        raise NotFound("Appointment not found")
    db.delete(appointment)
    db.commit()
    logger.info("Appointment %s deleted", appointment_uid)
    return {"message": "Appointment deleted successfully"}
