from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field

from model.appointment_model import MIN_DURATION, MAX_DURATION
from model.schema_base import CamelModel

AppointmentType = Literal["consultation", "followup", "emergency", "checkup"]
AppointmentStatus = Literal["scheduled", "confirmed", "in_progress", "completed", "cancelled", "no_show"]
PaymentStatus = Literal["pending", "paid", "refunded", "cancelled"]


class AppointmentRequest(CamelModel):
    doctor_id: str
    appointment_date: datetime
    duration: int = Field(default=30, ge=MIN_DURATION, le=MAX_DURATION)
    type: AppointmentType = "consultation"
    reason: str = Field(min_length=1)
    symptoms: Optional[List[str]] = None
    notes: Optional[str] = None


class AppointmentUpdate(CamelModel):
    notes: Optional[str] = None
    status: Optional[AppointmentStatus] = None
    diagnosis: Optional[str] = None
    prescription: Optional[str] = None
    follow_up_required: Optional[bool] = None
    follow_up_date: Optional[datetime] = None
    meeting_link: Optional[str] = None
    reason: Optional[str] = Field(default=None, min_length=1)
    symptoms: Optional[List[str]] = None
    payment_status: Optional[PaymentStatus] = None
    payment_amount: Optional[float] = Field(default=None, ge=0)
    location: Optional[str] = None


class AppointmentOut(CamelModel):
    uid: str
    patient_id: str
    doctor_id: str
    patient_name: Optional[str] = None
    doctor_name: Optional[str] = None
    appointment_date: datetime
    duration: int
    type: str
    status: str
    reason: str
    symptoms: Optional[List[str]] = None
    notes: Optional[str] = None
    prescription: Optional[str] = None
    diagnosis: Optional[str] = None
    follow_up_required: bool = False
    follow_up_date: Optional[datetime] = None
    payment_status: str
    payment_amount: Optional[float] = None
    meeting_link: Optional[str] = None
    location: Optional[str] = None
    cancelled_by: Optional[str] = None
    cancellation_reason: Optional[str] = None
    rescheduled_from: Optional[str] = None
    rescheduled_from_date: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, appointment) -> "AppointmentOut":
        patient_user = appointment.patient.user if appointment.patient else None
        doctor_user = appointment.doctor.user if appointment.doctor else None
        return cls(
            uid=appointment.uid,
            patient_id=appointment.patient.uid,
            doctor_id=appointment.doctor.uid,
            patient_name=patient_user.full_name if patient_user else None,
            doctor_name=doctor_user.full_name if doctor_user else None,
            appointment_date=appointment.appointment_date,
            duration=appointment.duration,
            type=appointment.type,
            status=appointment.status,
            reason=appointment.reason,
            symptoms=appointment.symptoms,
            notes=appointment.notes,
            prescription=appointment.prescription,
            diagnosis=appointment.diagnosis,
            follow_up_required=appointment.follow_up_required,
            follow_up_date=appointment.follow_up_date,
            payment_status=appointment.payment_status,
            payment_amount=appointment.payment_amount,
            meeting_link=appointment.meeting_link,
            location=appointment.location,
            cancelled_by=appointment.cancelled_by.uid if appointment.cancelled_by else None,
            cancellation_reason=appointment.cancellation_reason,
            rescheduled_from=appointment.rescheduled_from,
            rescheduled_from_date=appointment.rescheduled_from_date,
            created_at=appointment.created_at,
            updated_at=appointment.updated_at,
        )
