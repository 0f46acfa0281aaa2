from sqlalchemy import Column, Integer, String, DateTime, Date, Boolean, JSON
from sqlalchemy.orm import relationship
from database import Base
from model.common import TimestampMixin

ROLES = ("patient", "doctor", "admin")
GENDERS = ("male", "female", "other")


class Users(TimestampMixin, Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    uid = Column(String(64), unique=True, nullable=False, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    # absent for OAuth-only accounts
    hashed_password = Column(String(255), nullable=True)
    first_name = Column(String(100), nullable=False)
    last_name = Column(String(100), nullable=False)
    phone_number = Column(String(20))
    date_of_birth = Column(Date)
    gender = Column(String(10))
    address = Column(JSON)
    role = Column(String(20), nullable=False, index=True)
    profile_image = Column(String(500))
    google_id = Column(String(100), unique=True, nullable=True)
    is_verified = Column(Boolean, default=False, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime)

    patient = relationship("Patients", back_populates="user", uselist=False, cascade="all, delete-orphan")
    doctor = relationship("Doctors", back_populates="user", uselist=False, cascade="all, delete-orphan")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"
