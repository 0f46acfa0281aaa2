from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from model.schema_base import CamelModel

ReportType = Literal["lab_result", "imaging", "prescription", "discharge_summary", "consultation_notes", "ai_analysis"]
ReportStatus = Literal["draft", "final", "archived"]
Severity = Literal["low", "medium", "high", "critical"]

# wire field -> ORM attribute where they differ
REPORT_COLUMNS = {"metadata": "details"}


class AIAnalysis(CamelModel):
    summary: Optional[str] = None
    recommendations: List[str] = []
    severity: Optional[Severity] = None
    confidence: Optional[float] = Field(default=None, ge=0, le=100)
    analyzed_at: Optional[datetime] = None
    findings: List[str] = []
    conditions: List[str] = []


class ReportUpdate(CamelModel):
    title: Optional[str] = Field(default=None, min_length=1)
    description: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    ai_analysis: Optional[AIAnalysis] = None
    status: Optional[ReportStatus] = None
    is_confidential: Optional[bool] = None
    tags: Optional[List[str]] = None


class DiagnosisSuggestion(CamelModel):
    condition: str
    probability: float = 0
    description: Optional[str] = None
    recommendations: Optional[List[str]] = None
    medications: Optional[List[str]] = None


class DiagnosisResult(CamelModel):
    suggestions: List[DiagnosisSuggestion] = []
    confidence: float = 0
    analysis: str = ""


class AIReportRequest(CamelModel):
    diagnosis_result: DiagnosisResult
    symptoms: List[str] = []
    description: Optional[str] = None
    title: Optional[str] = None


class ReportOut(CamelModel):
    uid: str
    patient_id: str
    doctor_id: Optional[str] = None
    appointment_id: Optional[str] = None
    title: str
    type: str
    description: Optional[str] = None
    file_name: str
    file_type: str
    file_size: int
    file_ref: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None
    ai_analysis: Optional[AIAnalysis] = None
    blockchain_record: Optional[Dict[str, Any]] = None
    status: str
    is_confidential: bool
    tags: Optional[List[str]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, report) -> "ReportOut":
        return cls(
            uid=report.uid,
            patient_id=report.patient.uid,
            doctor_id=report.doctor.uid if report.doctor else None,
            appointment_id=report.appointment.uid if report.appointment else None,
            title=report.title,
            type=report.type,
            description=report.description,
            file_name=report.file_name,
            file_type=report.file_type,
            file_size=report.file_size,
            file_ref=report.file_ref,
            metadata=report.details,
            ai_analysis=report.ai_analysis,
            blockchain_record=report.blockchain_record,
            status=report.status,
            is_confidential=report.is_confidential,
            tags=report.tags,
            created_at=report.created_at,
            updated_at=report.updated_at,
        )
