from sqlalchemy import Column, Integer, String, Float, Boolean, Text, ForeignKey, JSON
from sqlalchemy.orm import relationship
from database import Base
from model.common import TimestampMixin


class Doctors(TimestampMixin, Base):
    __tablename__ = "doctors"

    id = Column(Integer, primary_key=True, index=True)
    uid = Column(String(80), unique=True, nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    license_number = Column(String(100), unique=True, nullable=False)

    specialization = Column(JSON, default=list)
    experience = Column(Integer, default=0, nullable=False)
    education = Column(JSON, default=list)
    certifications = Column(JSON, default=list)
    languages = Column(JSON, default=lambda: ["English"])
    # list of {"day_of_week", "start_time", "end_time", "is_available"}
    availability = Column(JSON, default=list)
    consultation_fee = Column(Integer, default=0, nullable=False)  # cents
    rating = Column(Float)
    total_reviews = Column(Integer, default=0)
    is_accepting_new_patients = Column(Boolean, default=True, nullable=False)
    hospital_affiliation = Column(String(200))
    bio = Column(Text)

    user = relationship("Users", back_populates="doctor")
    appointments = relationship("Appointment", back_populates="doctor", cascade="all, delete-orphan")
    reports = relationship("Reports", back_populates="doctor")
