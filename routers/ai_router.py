from typing import Optional

from fastapi import APIRouter, Depends, File, Form, UploadFile

from Controller import ai_controller
from core.auth_utils import get_current_user, require_roles
from model.ai_schema import SymptomsRequest
from model.user_model import Users
from services.ai_ml_client import AIMLClient, get_ai_client

router = APIRouter(prefix="/ai", tags=["AI"])


@router.post("/diagnose")
def diagnose(
    request: SymptomsRequest,
    user: Users = Depends(get_current_user),
    ai_client: AIMLClient = Depends(get_ai_client),
):
    return ai_controller.diagnose(ai_client, user, request)


@router.post("/analyze-symptoms")
def analyze_symptoms(
    request: SymptomsRequest,
    user: Users = Depends(get_current_user),
    ai_client: AIMLClient = Depends(get_ai_client),
):
    return ai_controller.analyze_symptoms(ai_client, user, request)


@router.post("/analyze-image")
def analyze_image(
    image: Optional[UploadFile] = File(None),
    image_url: Optional[str] = Form(None, alias="imageUrl"),
    patient_id: Optional[str] = Form(None, alias="patientId"),
    user: Users = Depends(require_roles("doctor", "admin")),
    ai_client: AIMLClient = Depends(get_ai_client),
):
    return ai_controller.analyze_image(ai_client, user, image, image_url, patient_id)
