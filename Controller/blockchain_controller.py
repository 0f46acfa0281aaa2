import json
import logging
from datetime import datetime
from typing import Optional

from fastapi import UploadFile
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from core.errors import Forbidden, NotFound, ServiceUnavailable, ValidationFailed
from model.patient_model import Patients
from model.user_model import Users
from services.ai_ml_client import AIMLClient, MLServiceError

logger = logging.getLogger(__name__)


def _require_service(ai_client: AIMLClient, what: str):
    if not ai_client.is_service_available():
        raise ServiceUnavailable(f"Blockchain {what} service is currently unavailable")


def _json_form_field(value: Optional[str], name: str, default):
    if not value:
        return default
    try:
        return json.loads(value)
    except ValueError:
        raise ValidationFailed(f"Invalid JSON format in {name}")


# ---------------- Records ----------------
def get_records(db: Session, ai_client: AIMLClient, user: Users, patient_id: str):
    patient = db.query(Patients).filter(Patients.uid == patient_id).first()
    if not patient:
        raise NotFound("Patient not found")
    if user.role == "patient" and patient.user_id != user.id:
        raise Forbidden("Access denied: You can only view your own medical records")

    _require_service(ai_client, "records")
    records = ai_client.get_patient_records(patient_id)
    return {
        "success": True,
        "patientId": patient_id,
        "records": records,
        "totalRecords": len(records),
        "retrievedAt": datetime.utcnow().isoformat(),
        "retrievedBy": {"uid": user.uid, "role": user.role},
    }


# ---------------- Store ----------------
def store_record(ai_client: AIMLClient, user: Users, file: UploadFile, patient_id: str,
                 metadata: Optional[str] = None, labels: Optional[str] = None, tags: Optional[str] = None):
    content = file.file.read()
    try:
        data = ai_client.upload_medical_record(
            content,
            file.filename,
            file.content_type or "application/octet-stream",
            patient_id,
            metadata=_json_form_field(metadata, "metadata", {}),
            labels=_json_form_field(labels, "labels", []),
            tags=_json_form_field(tags, "tags", []),
        )
    except MLServiceError as e:
        logger.error("Blockchain store failed for patient %s: %s", patient_id, e)
        raise ServiceUnavailable("File upload to blockchain failed")

    return {
        "success": True,
        "message": "Medical record stored successfully",
        "data": data,
        "uploadedBy": {"uid": user.uid, "role": user.role, "timestamp": datetime.utcnow().isoformat()},
    }


# ---------------- Verify ----------------
def verify_record(ai_client: AIMLClient, user: Users, file_id: str):
    _require_service(ai_client, "verification")
    result = ai_client.verify_medical_record(file_id)
    if not result:
        return JSONResponse(status_code=404, content={
            "verified": False,
            "message": "Record verification failed or record not found in blockchain",
            "fileId": file_id,
        })
    return {
        "verified": True,
        "message": "Medical record integrity verified",
        "fileId": file_id,
        "verificationDetails": result,
        "verifiedBy": user.uid,
        "verifiedAt": datetime.utcnow().isoformat(),
    }
