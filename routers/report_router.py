from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from Controller import report_controller
from core.auth_utils import get_current_admin, get_current_patient, get_current_user, require_roles
from database import get_db
from model.report_schema import AIReportRequest
from model.user_model import Users
from services.ai_ml_client import AIMLClient, get_ai_client
from services.file_store import FileStore, get_file_store

router = APIRouter(prefix="/reports", tags=["Reports"])
files_router = APIRouter(prefix="/files", tags=["Files"])


# -------------------------------
# 1️⃣ List reports (scoped by role)
# -------------------------------
@router.get("")
def list_reports(
    type: Optional[str] = None,
    status: Optional[str] = None,
    patient_id: Optional[str] = Query(None, alias="patientId"),
    doctor_id: Optional[str] = Query(None, alias="doctorId"),
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    user: Users = Depends(get_current_user),
):
    return report_controller.list_reports(db, user, type, status, patient_id, doctor_id, search, page, limit)


# -------------------------------
# 2️⃣ Upload a report (doctor / admin)
# -------------------------------
@router.post("")
async def create_report(
    file: UploadFile = File(...),
    patient_id: str = Form(..., alias="patientId"),
    title: str = Form(...),
    type: str = Form(...),
    appointment_id: Optional[str] = Form(None, alias="appointmentId"),
    description: Optional[str] = Form(None),
    metadata: Optional[str] = Form(None),
    ai_analysis: Optional[str] = Form(None, alias="aiAnalysis"),
    db: Session = Depends(get_db),
    user: Users = Depends(require_roles("doctor", "admin")),
    store: FileStore = Depends(get_file_store),
    ai_client: AIMLClient = Depends(get_ai_client),
):
    return await report_controller.create_report(
        db, user, store, ai_client, file, patient_id, title, type,
        appointment_id=appointment_id, description=description, metadata=metadata, ai_analysis=ai_analysis,
    )


# -------------------------------
# 3️⃣ Save an AI diagnosis as a report
# -------------------------------
@router.post("/ai-analysis")
async def save_ai_analysis(
    request: AIReportRequest,
    db: Session = Depends(get_db),
    user: Users = Depends(get_current_patient),
    store: FileStore = Depends(get_file_store),
):
    return await report_controller.save_ai_report(db, user, store, request)


# -------------------------------
# 4️⃣ Get / download
# -------------------------------
@router.get("/{uid}")
async def get_report(
    uid: str,
    download: bool = False,
    db: Session = Depends(get_db),
    user: Users = Depends(get_current_user),
    store: FileStore = Depends(get_file_store),
):
    return await report_controller.get_report(db, user, store, uid, download)


# -------------------------------
# 5️⃣ Update fields / replace file
# -------------------------------
@router.put("/{uid}")
def update_report(
    uid: str,
    body: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    user: Users = Depends(require_roles("doctor", "admin")),
):
    return report_controller.update_report(db, user, uid, body)


@router.put("/{uid}/file")
async def replace_report_file(
    uid: str,
    file: UploadFile = File(...),
    db: Session = Depends(get_db),
    user: Users = Depends(require_roles("doctor", "admin")),
    store: FileStore = Depends(get_file_store),
):
    return await report_controller.replace_report_file(db, user, store, uid, file)


# -------------------------------
# 6️⃣ Delete (admin)
# -------------------------------
@router.delete("/{uid}")
def delete_report(
    uid: str,
    db: Session = Depends(get_db),
    user: Users = Depends(get_current_admin),
    store: FileStore = Depends(get_file_store),
):
    return report_controller.delete_report(db, store, uid)


# ---------------- Stored report files ----------------
@files_router.get("/{uid}")
async def get_file(
    uid: str,
    db: Session = Depends(get_db),
    user: Users = Depends(get_current_user),
    store: FileStore = Depends(get_file_store),
):
    return await report_controller.get_report_file(db, user, store, uid)
