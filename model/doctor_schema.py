import re
from datetime import datetime
from typing import List, Literal, Optional

from pydantic import Field, field_validator

from model.schema_base import CamelModel
from model.user_schema import UserSummary

DayOfWeek = Literal["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
TIME_PATTERN = re.compile(r"^([0-1]?[0-9]|2[0-3]):([0-5][0-9])$")


class AvailabilityWindow(CamelModel):
    day_of_week: DayOfWeek
    start_time: str
    end_time: str
    is_available: bool = True

    @field_validator("day_of_week", mode="before")
    @classmethod
    def lower_day(cls, value):
        return value.lower() if isinstance(value, str) else value

    @field_validator("start_time", "end_time")
    @classmethod
    def zero_pad_time(cls, value: str) -> str:
        # times are compared as strings, so "9:00" must become "09:00"
        match = TIME_PATTERN.match(value)
        if not match:
            raise ValueError("Invalid time format in availability (use HH:MM)")
        return f"{int(match.group(1)):02d}:{match.group(2)}"


class Education(CamelModel):
    degree: str
    institution: str
    year: int


class DoctorUpdate(CamelModel):
    specialization: Optional[List[str]] = None
    experience: Optional[int] = Field(default=None, ge=0)
    education: Optional[List[Education]] = None
    certifications: Optional[List[str]] = None
    languages: Optional[List[str]] = None
    availability: Optional[List[AvailabilityWindow]] = None
    consultation_fee: Optional[int] = Field(default=None, ge=0)
    is_accepting_new_patients: Optional[bool] = None
    hospital_affiliation: Optional[str] = None
    bio: Optional[str] = None
    license_number: Optional[str] = Field(default=None, min_length=1)


class DoctorCreate(CamelModel):
    user_id: Optional[str] = Field(default=None, description="required when an admin creates the profile")
    license_number: str = Field(min_length=1)
    specialization: List[str] = Field(min_length=1)
    experience: int = Field(default=0, ge=0)
    education: List[Education] = []
    certifications: List[str] = []
    languages: List[str] = ["English"]
    availability: List[AvailabilityWindow] = []
    consultation_fee: int = Field(default=0, ge=0)
    hospital_affiliation: Optional[str] = None
    bio: Optional[str] = None


class DoctorOut(CamelModel):
    uid: str
    user: Optional[UserSummary] = None
    license_number: str
    specialization: List[str] = []
    experience: int = 0
    education: List[Education] = []
    certifications: List[str] = []
    languages: List[str] = []
    availability: List[AvailabilityWindow] = []
    consultation_fee: int = 0
    rating: Optional[float] = None
    total_reviews: Optional[int] = None
    is_accepting_new_patients: bool
    hospital_affiliation: Optional[str] = None
    bio: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
