import asyncio
import logging
from datetime import datetime

from fastapi import Request, Response
from sqlalchemy.orm import Session

from core.auth_utils import create_access_token, hash_password, verify_password
from core.config import JWT_EXPIRES_MINUTES, MAIL_ENABLED, MIN_PASSWORD_LENGTH
from core.errors import Conflict, Forbidden, Unauthenticated, ValidationFailed
from model.common import generate_uid
from model.doctor_model import Doctors
from model.patient_model import Patients
from model.user_model import Users
from model.user_schema import LoginRequest, RegisterRequest, UserOut
from services.mailer import send_login_notification

logger = logging.getLogger(__name__)

AUTH_COOKIE = "auth_token"


def user_payload(user: Users) -> dict:
    return UserOut.model_validate(user).model_dump(by_alias=True, mode="json")


def _set_auth_cookie(response: Response, token: str):
    response.set_cookie(
        key=AUTH_COOKIE,
        value=token,
        httponly=True,
        samesite="lax",
        max_age=JWT_EXPIRES_MINUTES * 60,
    )


# ---------------- Register ----------------
def register_user(request: RegisterRequest, response: Response, db: Session):
    if len(request.password) < MIN_PASSWORD_LENGTH:
        raise ValidationFailed(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

    email = request.email.lower()
    if db.query(Users).filter(Users.email == email).first():
        raise Conflict("User with this email already exists")

    uid = generate_uid("user")
    user = Users(
        uid=uid,
        email=email,
        hashed_password=hash_password(request.password),
        first_name=request.first_name,
        last_name=request.last_name,
        phone_number=request.phone_number,
        date_of_birth=request.date_of_birth,
        gender=request.gender,
        role=request.role,
        is_verified=False,
        is_active=True,
    )
    db.add(user)

    # every patient/doctor account starts with an empty profile
    if request.role == "patient":
        user.patient = Patients(uid=f"patient_{uid}")
    elif request.role == "doctor":
        user.doctor = Doctors(
            uid=f"doctor_{uid}",
            license_number=f"TEMP_{uid}",
            specialization=[],
            experience=0,
            education=[],
            languages=["English"],
            availability=[],
            consultation_fee=0,
        )

    db.commit()
    db.refresh(user)
    logger.info("Registered %s user %s", user.role, user.uid)

    token = create_access_token(user.uid, user.email, user.role)
    _set_auth_cookie(response, token)
    return {"message": "User registered successfully", "user": user_payload(user), "token": token}


# ---------------- Login ----------------
async def login_user(request_data: LoginRequest, request: Request, response: Response, db: Session):
    user = db.query(Users).filter(Users.email == request_data.email.lower()).first()
    if not user:
        raise Unauthenticated("Invalid email or password")
    if not user.is_active:
        raise Forbidden("Account is deactivated")
    if not verify_password(request_data.password, user.hashed_password):
        raise Unauthenticated("Invalid email or password")

    user.last_login = datetime.utcnow()
    db.commit()
    db.refresh(user)

    token = create_access_token(user.uid, user.email, user.role)
    _set_auth_cookie(response, token)

    if MAIL_ENABLED:
        client_host = request.client.host if request.client else "unknown"
        asyncio.create_task(send_login_notification(user.email, user.first_name, user.last_name, client_host))

    return {
        "message": "Login successful",
        "access_token": token,
        "token_type": "bearer",
        "token": token,
        "user": user_payload(user),
    }


# ---------------- Session ----------------
def current_user_info(user: Users):
    return {"success": True, "user": user_payload(user)}


def logout_user(response: Response):
    # tokens are stateless; dropping the cookie is all the server can do
    for name in ("token", AUTH_COOKIE):
        response.delete_cookie(name)
    return {"message": "Logged out successfully"}
