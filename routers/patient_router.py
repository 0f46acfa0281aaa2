from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from Controller import patient_controller
from core.auth_utils import get_current_admin, get_current_user, require_roles
from database import get_db
from model.patient_schema import PatientCreate
from model.user_model import Users

router = APIRouter(prefix="/patients", tags=["Patients"])


# ---------------- List ----------------
@router.get("")
def list_patients(
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    user: Users = Depends(get_current_user),
):
    return patient_controller.list_patients(db, user, search, page, limit)


# ---------------- Create profile (admin / doctor) ----------------
@router.post("")
def create_patient(
    request: PatientCreate,
    db: Session = Depends(get_db),
    user: Users = Depends(require_roles("admin", "doctor")),
):
    return patient_controller.create_patient(db, request)


# ---------------- Profile ----------------
@router.get("/{uid}")
def get_patient(uid: str, db: Session = Depends(get_db), user: Users = Depends(get_current_user)):
    return patient_controller.get_patient(db, user, uid)


@router.put("/{uid}")
def update_patient(
    uid: str,
    body: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    user: Users = Depends(get_current_user),
):
    return patient_controller.update_patient(db, user, uid, body)


@router.delete("/{uid}")
def delete_patient(uid: str, db: Session = Depends(get_db), user: Users = Depends(get_current_admin)):
    return patient_controller.delete_patient(db, uid)
