from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import Field

from model.schema_base import CamelModel
from model.user_schema import UserSummary

BloodType = Literal["A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-"]
SmokingStatus = Literal["never", "former", "current"]
AlcoholConsumption = Literal["none", "occasional", "moderate", "heavy"]


class EmergencyContact(CamelModel):
    name: Optional[str] = None
    relationship: Optional[str] = None
    phone_number: Optional[str] = None


class MedicalHistory(CamelModel):
    allergies: List[str] = []
    chronic_conditions: List[str] = []
    medications: List[str] = []
    previous_surgeries: List[str] = []
    family_history: List[str] = []


class Insurance(CamelModel):
    provider: Optional[str] = None
    policy_number: Optional[str] = None
    group_number: Optional[str] = None


class PatientUpdate(CamelModel):
    emergency_contact: Optional[EmergencyContact] = None
    medical_history: Optional[MedicalHistory] = None
    insurance: Optional[Insurance] = None
    preferred_language: Optional[str] = None
    blood_type: Optional[BloodType] = None
    height: Optional[float] = Field(default=None, ge=0)
    weight: Optional[float] = Field(default=None, ge=0)
    smoking_status: Optional[SmokingStatus] = None
    alcohol_consumption: Optional[AlcoholConsumption] = None


class PatientCreate(PatientUpdate):
    user_id: str = Field(description="uid of a user with the patient role")


class PatientOut(CamelModel):
    uid: str
    user: Optional[UserSummary] = None
    emergency_contact: Optional[EmergencyContact] = None
    medical_history: Optional[MedicalHistory] = None
    insurance: Optional[Insurance] = None
    preferred_language: Optional[str] = None
    blood_type: Optional[str] = None
    height: Optional[float] = None
    weight: Optional[float] = None
    smoking_status: Optional[str] = None
    alcohol_consumption: Optional[str] = None
    blockchain_record: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
