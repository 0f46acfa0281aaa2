from sqlalchemy import Column, Integer, String, Text, Boolean, ForeignKey, JSON
from sqlalchemy.orm import relationship
from database import Base
from model.common import TimestampMixin

REPORT_TYPES = ("lab_result", "imaging", "prescription", "discharge_summary", "consultation_notes", "ai_analysis")
REPORT_STATUSES = ("draft", "final", "archived")
SEVERITIES = ("low", "medium", "high", "critical")


class Reports(TimestampMixin, Base):
    __tablename__ = "reports"

    id = Column(Integer, primary_key=True, index=True)
    uid = Column(String(80), unique=True, nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)
    doctor_id = Column(Integer, ForeignKey("doctors.id", ondelete="SET NULL"), nullable=True, index=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id", ondelete="SET NULL"), nullable=True)

    title = Column(String(300), nullable=False)
    type = Column(String(30), nullable=False, index=True)
    description = Column(Text)
    file_name = Column(String(300), nullable=False)
    file_type = Column(String(150), nullable=False)
    file_size = Column(Integer, nullable=False, default=0)
    file_ref = Column(String(100))
    # "metadata" is reserved on declarative classes
    details = Column("metadata", JSON)
    ai_analysis = Column(JSON)
    blockchain_record = Column(JSON)
    status = Column(String(20), nullable=False, default="final", index=True)
    is_confidential = Column(Boolean, default=False, nullable=False)
    tags = Column(JSON)

    patient = relationship("Patients", back_populates="reports")
    doctor = relationship("Doctors", back_populates="reports")
    appointment = relationship("Appointment", back_populates="reports")
    images = relationship("Images", back_populates="report", cascade="all, delete-orphan")
