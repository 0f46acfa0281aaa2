import json
import logging
import math
from datetime import datetime
from typing import Any, Dict, List, Optional

from fastapi import UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import StreamingResponse
from sqlalchemy import or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.config import MAX_REPORT_BYTES
from core.errors import Forbidden, NotFound, ServiceUnavailable, ValidationFailed
from core.permissions import filter_fields
from model.appointment_model import Appointment
from model.common import generate_uid
from model.patient_model import Patients
from model.report_model import Reports, REPORT_TYPES, REPORT_STATUSES
from model.report_schema import AIReportRequest, REPORT_COLUMNS, ReportOut, ReportUpdate
from model.schema_base import apply_updates, normalize_keys, validate_update
from model.user_model import Users
from services.ai_ml_client import AIMLClient
from services.file_store import FileStore, FileStoreError, content_disposition

logger = logging.getLogger(__name__)

ALLOWED_REPORT_TYPES = (
    "application/pdf",
    "application/msword",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
    "text/plain",
    "image/jpeg",
    "image/png",
    "image/gif",
)

AI_REPORT_TAGS = ["ai_analysis", "symptom_diagnosis", "generated"]


def _serialize(report: Reports) -> dict:
    return ReportOut.from_model(report).model_dump(by_alias=True, mode="json")


def _get_report_or_404(db: Session, uid: str) -> Reports:
    report = db.query(Reports).filter(Reports.uid == uid).first()
    if not report:
        raise NotFound("Report not found")
    return report


def _is_report_doctor(report: Reports, user: Users) -> bool:
    return user.role == "doctor" and report.doctor is not None and report.doctor.user_id == user.id


def can_read_report(report: Reports, user: Users) -> bool:
    if user.role == "admin":
        return True
    if user.role == "patient":
        return report.patient.user_id == user.id
    return _is_report_doctor(report, user)


def _parse_json_field(value: Optional[str], name: str) -> Optional[Any]:
    if value is None or value == "":
        return None
    try:
        return json.loads(value)
    except ValueError:
        raise ValidationFailed(f"Invalid JSON format in {name}")


async def read_upload(file: UploadFile, allowed_types, max_bytes: int, type_error: str, size_error: str) -> bytes:
    if file.content_type not in allowed_types:
        raise ValidationFailed(type_error)
    content = await file.read()
    if len(content) > max_bytes:
        raise ValidationFailed(size_error)
    return content


def commit_or_discard(db: Session, store: FileStore, file_ref: Optional[str]):
    """Commits the session; on failure the just-stored file is removed so no blob is orphaned."""
    try:
        db.commit()
    except SQLAlchemyError:
        db.rollback()
        if file_ref:
            store.delete(file_ref)
        raise


async def _read_report_file(file: UploadFile) -> bytes:
    return await read_upload(
        file, ALLOWED_REPORT_TYPES, MAX_REPORT_BYTES,
        "Invalid file type. Only PDF, DOC, DOCX, TXT, and image files are allowed",
        f"File size too large. Maximum size is {MAX_REPORT_BYTES // (1024 * 1024)}MB",
    )


# ---------------- List ----------------
def list_reports(db: Session, user: Users, type: Optional[str] = None, status: Optional[str] = None,
                 patient_id: Optional[str] = None, doctor_id: Optional[str] = None,
                 search: Optional[str] = None, page: int = 1, limit: int = 10):
    empty = {"reports": [], "pagination": {"page": page, "limit": limit, "total": 0, "pages": 0}}
    query = db.query(Reports)

    if type:
        query = query.filter(Reports.type == type)
    if status:
        query = query.filter(Reports.status == status)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Reports.title.ilike(pattern), Reports.description.ilike(pattern)))
    if patient_id:
        query = query.join(Patients, Reports.patient_id == Patients.id).filter(Patients.uid == patient_id)
    if doctor_id:
        query = query.filter(Reports.doctor.has(uid=doctor_id))

    if user.role == "patient":
        if not user.patient:
            return empty
        query = query.filter(Reports.patient_id == user.patient.id)
    elif user.role == "doctor":
        if not user.doctor:
            return empty
        query = query.filter(Reports.doctor_id == user.doctor.id)

    total = query.count()
    reports = query.order_by(Reports.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    return {
        "reports": [_serialize(r) for r in reports],
        "pagination": {"page": page, "limit": limit, "total": total, "pages": math.ceil(total / limit)},
    }


# ---------------- Create (doctor / admin) ----------------
async def create_report(db: Session, user: Users, store: FileStore, ai_client: AIMLClient, file: UploadFile,
                        patient_id: str, title: str, type: str, appointment_id: Optional[str] = None,
                        description: Optional[str] = None, metadata: Optional[str] = None,
                        ai_analysis: Optional[str] = None):
    patient = db.query(Patients).filter(Patients.uid == patient_id).first()
    if not patient:
        raise NotFound("Patient not found")

    appointment = None
    if appointment_id:
        appointment = db.query(Appointment).filter(Appointment.uid == appointment_id).first()
        if not appointment:
            raise NotFound("Appointment not found")

    doctor = None
    if user.role == "doctor":
        doctor = user.doctor
        if not doctor:
            raise NotFound("Doctor profile not found")

    if type not in REPORT_TYPES:
        raise ValidationFailed("Invalid report type")

    content = await _read_report_file(file)
    parsed_metadata = _parse_json_field(metadata, "metadata") or {}
    parsed_analysis = _parse_json_field(ai_analysis, "aiAnalysis")
    if parsed_analysis is not None:
        checked = validate_update(ReportUpdate, {"ai_analysis": parsed_analysis}, "aiAnalysis")
        parsed_analysis = checked.model_dump(mode="json")["ai_analysis"]

    uid = generate_uid("report")
    try:
        file_ref = await store.save(content, file.filename, file.content_type, {
            "patientId": patient.uid,
            "uploadedBy": user.uid,
            "reportUid": uid,
        })
    except FileStoreError:
        raise ServiceUnavailable("File storage is unavailable")

    report = Reports(
        uid=uid,
        patient_id=patient.id,
        doctor_id=doctor.id if doctor else None,
        appointment_id=appointment.id if appointment else None,
        title=title,
        type=type,
        description=description,
        file_name=file.filename,
        file_type=file.content_type,
        file_size=len(content),
        file_ref=file_ref,
        details=parsed_metadata,
        ai_analysis=parsed_analysis,
        status="final",
        is_confidential=False,
    )

    # chain mirroring is optional; the report stands without it
    record = await run_in_threadpool(
        ai_client.store_medical_record, patient.uid, file_ref, file.filename, {"reportUid": uid, "type": type},
    )
    if record:
        report.blockchain_record = record

    db.add(report)
    commit_or_discard(db, store, file_ref)
    db.refresh(report)
    logger.info("Report %s uploaded for patient %s", uid, patient.uid)
    return {"message": "Report uploaded successfully", "report": _serialize(report)}


# ---------------- AI analysis report ----------------
def _ai_analysis_from(result) -> Dict[str, Any]:
    confidence = result.confidence if result.confidence > 1 else result.confidence * 100
    if confidence > 80:
        severity = "high"
    elif confidence > 60:
        severity = "medium"
    else:
        severity = "low"

    recommendations: List[str] = []
    for suggestion in result.suggestions:
        recommendations.extend(suggestion.recommendations or suggestion.medications or [])

    return {
        "summary": result.analysis,
        "recommendations": recommendations,
        "severity": severity,
        "confidence": min(confidence, 100),
        "analyzed_at": datetime.utcnow().isoformat(),
        "findings": [s.description for s in result.suggestions if s.description],
        "conditions": [s.condition for s in result.suggestions if s.condition],
    }


async def save_ai_report(db: Session, user: Users, store: FileStore, request: AIReportRequest):
    patient = user.patient
    if not patient:
        # first analysis for this user
        patient = Patients(uid=generate_uid("patient"), user_id=user.id)
        db.add(patient)
        db.flush()

    result = request.diagnosis_result
    now = datetime.utcnow()
    title = request.title or f"AI Analysis - {now:%Y-%m-%d}"
    report_data = {
        "title": title,
        "symptoms": request.symptoms,
        "description": request.description or "",
        "diagnosis": result.model_dump(by_alias=True, mode="json"),
        "generatedAt": now.isoformat(),
        "generatedBy": user.uid,
        "patientId": patient.uid,
    }
    content = json.dumps(report_data, indent=2).encode("utf-8")
    file_name = f"ai_analysis_{int(now.timestamp() * 1000)}.json"

    file_ref = None
    try:
        file_ref = await store.save(content, file_name, "application/json", {
            "patientId": patient.uid,
            "uploadedBy": user.uid,
            "reportType": "ai_analysis",
            "generatedFrom": "ai_diagnosis",
        })
    except FileStoreError as e:
        logger.warning("AI report file not stored, saving report without it: %s", e)

    report = Reports(
        uid=generate_uid("ai_report"),
        patient_id=patient.id,
        title=title,
        type="ai_analysis",
        description=request.description or "AI-powered symptom analysis report",
        file_name=file_name,
        file_type="application/json",
        file_size=len(content),
        file_ref=file_ref,
        details={
            "symptoms": request.symptoms,
            "testType": "AI Symptom Analysis",
            "interpretation": result.analysis,
            "results": {"confidence": result.confidence, "suggestionCount": len(result.suggestions)},
        },
        ai_analysis=_ai_analysis_from(result),
        status="final",
        is_confidential=False,
        tags=list(AI_REPORT_TAGS),
    )
    db.add(report)
    commit_or_discard(db, store, file_ref)
    db.refresh(report)
    logger.info("AI analysis report %s saved for patient %s", report.uid, patient.uid)
    return {"success": True, "message": "AI analysis report saved successfully", "report": _serialize(report)}


# ---------------- Get / download ----------------
async def stream_report_file(report: Reports, store: FileStore, disposition: str = "attachment"):
    if not report.file_ref or not store.exists(report.file_ref):
        raise NotFound("File not found")
    headers = {
        "Content-Disposition": content_disposition(report.file_name, disposition),
        "Content-Length": str(report.file_size),
    }
    return StreamingResponse(store.stream(report.file_ref), media_type=report.file_type, headers=headers)


async def get_report(db: Session, user: Users, store: FileStore, uid: str, download: bool = False):
    report = _get_report_or_404(db, uid)
    if not can_read_report(report, user):
        raise Forbidden("Access denied")
    if download:
        return await stream_report_file(report, store)
    return {"report": _serialize(report)}


async def get_report_file(db: Session, user: Users, store: FileStore, uid: str):
    report = _get_report_or_404(db, uid)
    if not can_read_report(report, user):
        raise Forbidden("Access denied")
    return await stream_report_file(report, store, disposition="inline")


# ---------------- Update / Delete ----------------
def _check_report_writer(report: Reports, user: Users):
    if user.role != "admin" and not _is_report_doctor(report, user):
        raise Forbidden("Access denied")


def update_report(db: Session, user: Users, uid: str, body: Dict[str, Any]):
    report = _get_report_or_404(db, uid)
    _check_report_writer(report, user)

    allowed = filter_fields("report", user.role, normalize_keys(body))
    if allowed.get("status") and allowed["status"] not in REPORT_STATUSES:
        raise ValidationFailed("Invalid report status")
    update = validate_update(ReportUpdate, allowed, "report update")
    apply_updates(report, update, REPORT_COLUMNS)
    db.commit()
    db.refresh(report)
    return {"message": "Report updated successfully", "report": _serialize(report)}


async def replace_report_file(db: Session, user: Users, store: FileStore, uid: str, file: UploadFile):
    report = _get_report_or_404(db, uid)
    _check_report_writer(report, user)

    content = await _read_report_file(file)
    try:
        file_ref = await store.save(content, file.filename, file.content_type, {
            "patientId": report.patient.uid,
            "uploadedBy": user.uid,
            "reportUid": report.uid,
        })
    except FileStoreError:
        raise ServiceUnavailable("File storage is unavailable")

    old_ref = report.file_ref
    report.file_ref = file_ref
    report.file_name = file.filename
    report.file_type = file.content_type
    report.file_size = len(content)
    commit_or_discard(db, store, file_ref)
    db.refresh(report)
    if old_ref:
        store.delete(old_ref)
    return {"message": "Report updated successfully", "report": _serialize(report)}


def delete_report(db: Session, store: FileStore, uid: str):
    report = _get_report_or_404(db, uid)
    summary = {
        "uid": report.uid,
        "title": report.title,
        "patientId": report.patient.uid,
        "doctorId": report.doctor.uid if report.doctor else None,
    }
    file_refs = [report.file_ref] + [image.file_ref for image in report.images]
    db.delete(report)
    db.commit()
    for ref in file_refs:
        if ref:
            store.delete(ref)
    logger.info("Report %s deleted", uid)
    return {"message": "Report deleted successfully", "report": summary}
