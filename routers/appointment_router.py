from datetime import datetime
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from Controller import appointment_controller
from core.auth_utils import get_current_admin, get_current_patient, get_current_user
from database import get_db
from model.appointment_schema import AppointmentRequest
from model.user_model import Users

router = APIRouter(prefix="/appointments", tags=["Appointments"])


# -------------------------------
# 1️⃣ List appointments (scoped by role)
# -------------------------------
@router.get("")
def list_appointments(
    status: Optional[str] = None,
    type: Optional[str] = None,
    date_from: Optional[datetime] = Query(None, alias="dateFrom"),
    date_to: Optional[datetime] = Query(None, alias="dateTo"),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    user: Users = Depends(get_current_user),
):
    return appointment_controller.list_appointments(db, user, status, type, date_from, date_to, page, limit)


# -------------------------------
# 2️⃣ Book a new appointment
# -------------------------------
@router.post("")
def book_appointment(
    request: AppointmentRequest,
    db: Session = Depends(get_db),
    user: Users = Depends(get_current_patient),
):
    return appointment_controller.book_appointment(db, user, request)


# -------------------------------
# 3️⃣ Get one appointment
# -------------------------------
@router.get("/{uid}")
def get_appointment(uid: str, db: Session = Depends(get_db), user: Users = Depends(get_current_user)):
    return appointment_controller.get_appointment(db, user, uid)


# -------------------------------
# 4️⃣ Update, cancel or reschedule
# -------------------------------
@router.put("/{uid}")
def update_appointment(
    uid: str,
    body: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    user: Users = Depends(get_current_user),
):
    return appointment_controller.update_appointment(db, user, uid, body)


# -------------------------------
# 5️⃣ Delete (admin)
# -------------------------------
@router.delete("/{uid}")
def delete_appointment(uid: str, db: Session = Depends(get_db), user: Users = Depends(get_current_admin)):
    return appointment_controller.delete_appointment(db, uid)
