# auth_utils.py
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError, ExpiredSignatureError
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from core.config import (
    JWT_SECRET, JWT_ALGORITHM, JWT_EXPIRES_MINUTES, BCRYPT_ROUNDS, MAX_BCRYPT_BYTES, TOKEN_COOKIES,
)
from core.errors import Unauthenticated, Forbidden, NotFound, ValidationFailed
from database import get_db
from model.user_model import Users

logger = logging.getLogger(__name__)

# ---------------- Passwords ----------------
bcrypt_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=BCRYPT_ROUNDS)


def hash_password(password: str) -> str:
    if len(password.encode("utf-8")) > MAX_BCRYPT_BYTES:
        raise ValidationFailed(f"Password too long, max {MAX_BCRYPT_BYTES} bytes")
    return bcrypt_context.hash(password)


def verify_password(password: str, hashed_password: Optional[str]) -> bool:
    if not hashed_password or len(password.encode("utf-8")) > MAX_BCRYPT_BYTES:
        return False
    return bcrypt_context.verify(password, hashed_password)


# ---------------- JWT ----------------
# auto_error=False so a missing header can fall back to the cookies
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/auth/login", auto_error=False)


def create_access_token(uid: str, email: str, role: str, expires_delta: Optional[timedelta] = None) -> str:
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=JWT_EXPIRES_MINUTES))
    payload = {"uid": uid, "email": email, "role": role, "iat": now, "exp": expire}
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        payload = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise Unauthenticated("Token has expired")
    except JWTError:
        raise Unauthenticated("Invalid token")
    if not payload.get("uid"):
        raise Unauthenticated("Invalid token")
    return payload


def get_token_from_request(request: Request, bearer: Optional[str] = None) -> Optional[str]:
    if bearer:
        return bearer
    for name in TOKEN_COOKIES:
        token = request.cookies.get(name)
        if token:
            return token
    return None


def resolve_user(token: str, db: Session) -> Users:
    payload = decode_access_token(token)
    user = db.query(Users).filter(Users.uid == payload["uid"]).first()
    if not user:
        raise NotFound("User not found")
    if not user.is_active:
        raise Forbidden("Account is deactivated")
    return user


# ---------------- Dependencies ----------------
def require_roles(*allowed_roles: str):
    """
    Dependency factory guarding a route.

    ``Depends(require_roles())`` accepts any active user,
    ``Depends(require_roles("doctor", "admin"))`` also checks the role.
    The resolved ``Users`` row is what the route receives.
    """
    def dependency(request: Request, bearer: Optional[str] = Depends(oauth2_scheme),
                   db: Session = Depends(get_db)) -> Users:
        token = get_token_from_request(request, bearer)
        if not token:
            raise Unauthenticated("No token provided")
        user = resolve_user(token, db)
        if allowed_roles and user.role not in allowed_roles:
            logger.info("Role %s refused on %s %s", user.role, request.method, request.url.path)
            raise Forbidden("Insufficient permissions")
        return user

    return dependency


get_current_user = require_roles()
get_current_patient = require_roles("patient")
get_current_doctor = require_roles("doctor")
get_current_admin = require_roles("admin")
