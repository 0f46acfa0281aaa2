from datetime import date, datetime
from typing import Literal, Optional

from pydantic import EmailStr, Field

from model.schema_base import CamelModel

Role = Literal["patient", "doctor", "admin"]
Gender = Literal["male", "female", "other"]


class Address(CamelModel):
    street: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    zip_code: Optional[str] = None
    country: Optional[str] = None


class RegisterRequest(CamelModel):
    email: EmailStr
    password: str
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    role: Role = "patient"
    phone_number: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None


class LoginRequest(CamelModel):
    email: EmailStr
    password: str


class UserCreate(CamelModel):
    email: EmailStr
    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    role: Role
    password: Optional[str] = None
    phone_number: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    address: Optional[Address] = None
    is_active: bool = True


class UserUpdate(CamelModel):
    first_name: Optional[str] = Field(default=None, min_length=1)
    last_name: Optional[str] = Field(default=None, min_length=1)
    phone_number: Optional[str] = None
    date_of_birth: Optional[date] = None
    gender: Optional[Gender] = None
    address: Optional[Address] = None
    profile_image: Optional[str] = None
    is_active: Optional[bool] = None
    role: Optional[Role] = None


class UserSummary(CamelModel):
    uid: str
    email: str
    first_name: str
    last_name: str
    phone_number: Optional[str] = None
    role: str


class UserOut(UserSummary):
    date_of_birth: Optional[date] = None
    gender: Optional[str] = None
    address: Optional[Address] = None
    profile_image: Optional[str] = None
    is_verified: bool
    is_active: bool
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
