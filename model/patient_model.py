from sqlalchemy import Column, Integer, String, Float, ForeignKey, JSON
from sqlalchemy.orm import relationship
from database import Base
from model.common import TimestampMixin

BLOOD_TYPES = ("A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-")
SMOKING_STATUSES = ("never", "former", "current")
ALCOHOL_LEVELS = ("none", "occasional", "moderate", "heavy")


class Patients(TimestampMixin, Base):
    __tablename__ = "patients"

    id = Column(Integer, primary_key=True, index=True)
    uid = Column(String(80), unique=True, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    emergency_contact = Column(JSON)
    medical_history = Column(JSON)
    insurance = Column(JSON)
    preferred_language = Column(String(50), default="English")
    blood_type = Column(String(3))
    height = Column(Float)  # cm
    weight = Column(Float)  # kg
    smoking_status = Column(String(10))
    alcohol_consumption = Column(String(12))
    blockchain_record = Column(JSON)

    user = relationship("Users", back_populates="patient")
    appointments = relationship("Appointment", back_populates="patient", cascade="all, delete-orphan")
    reports = relationship("Reports", back_populates="patient", cascade="all, delete-orphan")
