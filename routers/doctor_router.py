from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from Controller import doctor_controller
from core.auth_utils import get_current_admin, get_current_user, require_roles
from database import get_db
from model.doctor_schema import DoctorCreate
from model.user_model import Users

router = APIRouter(prefix="/doctors", tags=["Doctors"])


# ---------------- Public list ----------------
@router.get("")
def list_doctors(
    search: Optional[str] = None,
    specialization: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    return doctor_controller.list_doctors(db, search, specialization, page, limit)


# ---------------- Create profile ----------------
@router.post("")
def create_doctor(
    request: DoctorCreate,
    db: Session = Depends(get_db),
    user: Users = Depends(require_roles("admin", "doctor")),
):
    return doctor_controller.create_doctor(db, user, request)


# ---------------- Profile ----------------
@router.get("/{uid}")
def get_doctor(uid: str, db: Session = Depends(get_db), user: Users = Depends(get_current_user)):
    return doctor_controller.get_doctor(db, uid)


@router.put("/{uid}")
def update_doctor(
    uid: str,
    body: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    user: Users = Depends(get_current_user),
):
    return doctor_controller.update_doctor(db, user, uid, body)


@router.delete("/{uid}")
def delete_doctor(uid: str, db: Session = Depends(get_db), user: Users = Depends(get_current_admin)):
    return doctor_controller.delete_doctor(db, uid)
