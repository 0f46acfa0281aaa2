from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from Controller import blockchain_controller
from core.auth_utils import get_current_user
from database import get_db
from model.user_model import Users
from services.ai_ml_client import AIMLClient, get_ai_client

router = APIRouter(prefix="/blockchain", tags=["Blockchain"])


@router.get("/records")
def get_records(
    patient_id: str = Query(..., alias="patientId"),
    db: Session = Depends(get_db),
    user: Users = Depends(get_current_user),
    ai_client: AIMLClient = Depends(get_ai_client),
):
    return blockchain_controller.get_records(db, ai_client, user, patient_id)


@router.post("/store")
def store_record(
    file: UploadFile = File(...),
    patient_id: str = Form(..., alias="patientId"),
    metadata: Optional[str] = Form(None),
    labels: Optional[str] = Form(None),
    tags: Optional[str] = Form(None),
    user: Users = Depends(get_current_user),
    ai_client: AIMLClient = Depends(get_ai_client),
):
    return blockchain_controller.store_record(ai_client, user, file, patient_id, metadata, labels, tags)


@router.get("/verify")
def verify_record(
    file_id: str = Query(..., alias="fileId"),
    user: Users = Depends(get_current_user),
    ai_client: AIMLClient = Depends(get_ai_client),
):
    return blockchain_controller.verify_record(ai_client, user, file_id)
