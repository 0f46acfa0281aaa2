from sqlalchemy import Column, Integer, Float, Boolean, DateTime, ForeignKey, String, Text, JSON, Index
from sqlalchemy.orm import relationship
from database import Base
from model.common import TimestampMixin

APPOINTMENT_TYPES = ("consultation", "followup", "emergency", "checkup")
APPOINTMENT_STATUSES = ("scheduled", "confirmed", "in_progress", "completed", "cancelled", "no_show")
PAYMENT_STATUSES = ("pending", "paid", "refunded", "cancelled")
MIN_DURATION = 15
MAX_DURATION = 480


class Appointment(TimestampMixin, Base):
    __tablename__ = "appointments"
    __table_args__ = (
        Index("ix_appointments_doctor_date_status", "doctor_id", "appointment_date", "status"),
    )

    id = Column(Integer, primary_key=True, index=True)
    uid = Column(String(80), unique=True, nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="CASCADE"), nullable=False, index=True)
    # naive, in the clinic timezone
    appointment_date = Column(DateTime, nullable=False)
    duration = Column(Integer, nullable=False, default=30)
    type = Column(String(20), nullable=False, default="consultation")
    status = Column(String(20), nullable=False, default="scheduled", index=True)
    reason = Column(Text, nullable=False)
    symptoms = Column(JSON)
    notes = Column(Text)
    prescription = Column(Text)
    diagnosis = Column(Text)
    follow_up_required = Column(Boolean, default=False, nullable=False)
    follow_up_date = Column(DateTime)
    payment_status = Column(String(20), nullable=False, default="pending")
    payment_amount = Column(Float)
    meeting_link = Column(String(500))
    location = Column(String(300))
    cancelled_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    cancellation_reason = Column(Text)
    rescheduled_from = Column(String(80))
    rescheduled_from_date = Column(DateTime)

    patient = relationship("Patients", back_populates="appointments")
    doctor = relationship("Doctors", back_populates="appointments")
    cancelled_by = relationship("Users")
    reports = relationship("Reports", back_populates="appointment")
