import logging
from datetime import datetime
from typing import Optional

from fastapi import UploadFile

from core.errors import ServiceUnavailable, ValidationFailed
from model.ai_schema import SymptomsRequest
from model.user_model import Users
from services.ai_ml_client import AIMLClient, MLServiceError

logger = logging.getLogger(__name__)

ANALYSIS_IMAGE_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp")
MAX_ANALYSIS_IMAGE_BYTES = 10 * 1024 * 1024

DISCLAIMER = (
    "This AI analysis is for informational purposes only and should not replace professional "
    "medical advice. Please consult with a healthcare provider for proper diagnosis and treatment."
)


def _performed_by(user: Users) -> dict:
    return {"uid": user.uid, "role": user.role, "timestamp": datetime.utcnow().isoformat()}


def _require_service(ai_client: AIMLClient, what: str):
    if not ai_client.is_service_available():
        raise ServiceUnavailable(f"AI {what} service is currently unavailable. Please try again later.")


# ---------------- Diagnose ----------------
def diagnose(ai_client: AIMLClient, user: Users, request: SymptomsRequest):
    _require_service(ai_client, "diagnosis")
    try:
        diagnosis = ai_client.diagnose(request.symptoms, request.patient_id, request.description)
    except MLServiceError as e:
        logger.error("AI diagnosis failed: %s", e)
        raise ServiceUnavailable("AI diagnosis failed")
    return {"success": True, "diagnosis": diagnosis, "performedBy": _performed_by(user)}


def analyze_symptoms(ai_client: AIMLClient, user: Users, request: SymptomsRequest):
    _require_service(ai_client, "symptom analysis")
    try:
        analysis = ai_client.analyze_symptoms(request.symptoms, request.description)
    except MLServiceError as e:
        logger.error("AI symptom analysis failed: %s", e)
        raise ServiceUnavailable("AI symptom analysis failed")
    return {
        "success": True,
        "analysis": analysis,
        "disclaimer": DISCLAIMER,
        "performedBy": _performed_by(user),
    }


# ---------------- Image analysis (doctor / admin) ----------------
def analyze_image(ai_client: AIMLClient, user: Users, image: Optional[UploadFile] = None,
                  image_url: Optional[str] = None, patient_id: Optional[str] = None):
    if image is None and not image_url:
        raise ValidationFailed("Either image file or image URL is required")

    _require_service(ai_client, "image analysis")

    content = None
    if image is not None:
        if image.content_type not in ANALYSIS_IMAGE_TYPES:
            raise ValidationFailed("Invalid image format. Supported formats: JPEG, PNG, GIF, WebP")
        content = image.file.read()
        if len(content) > MAX_ANALYSIS_IMAGE_BYTES:
            raise ValidationFailed("Image file size too large. Maximum size is 10MB")

    try:
        analysis = ai_client.analyze_image(image_bytes=content, image_url=image_url, patient_id=patient_id)
    except MLServiceError as e:
        logger.error("AI image analysis failed: %s", e)
        raise ServiceUnavailable("AI image analysis failed")

    return {
        "success": True,
        "analysis": analysis,
        "imageInfo": {
            "filename": image.filename if image else None,
            "size": len(content) if content is not None else None,
            "type": image.content_type if image else None,
            "url": image_url,
        },
        "performedBy": _performed_by(user),
    }
