import logging
import math
from typing import Any, Dict, Optional

from sqlalchemy import or_
from sqlalchemy.orm import Session

from core.auth_utils import hash_password
from core.errors import Conflict, Forbidden, NotFound
from core.permissions import filter_fields
from model.common import generate_uid
from model.schema_base import apply_updates, normalize_keys, validate_update
from model.user_model import Users
from model.user_schema import UserCreate, UserOut, UserUpdate

logger = logging.getLogger(__name__)


def _serialize(user: Users) -> dict:
    return UserOut.model_validate(user).model_dump(by_alias=True, mode="json")


def _get_user_or_404(db: Session, uid: str) -> Users:
    user = db.query(Users).filter(Users.uid == uid).first()
    if not user:
        raise NotFound("User not found")
    return user


# ---------------- List ----------------
def list_users(db: Session, current_user: Users, role: Optional[str] = None, is_active: Optional[bool] = None,
               search: Optional[str] = None, page: int = 1, limit: int = 10):
    query = db.query(Users)
    if role:
        query = query.filter(Users.role == role)
    if is_active is not None:
        query = query.filter(Users.is_active == is_active)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            Users.first_name.ilike(pattern),
            Users.last_name.ilike(pattern),
            Users.email.ilike(pattern),
        ))
    # everyone but an admin only ever sees themselves
    if current_user.role != "admin":
        query = query.filter(Users.uid == current_user.uid)

    total = query.count()
    users = query.order_by(Users.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    return {
        "users": [_serialize(u) for u in users],
        "pagination": {"page": page, "limit": limit, "total": total, "pages": math.ceil(total / limit)},
    }


# ---------------- Create (admin) ----------------
def create_user(db: Session, request: UserCreate):
    email = request.email.lower()
    if db.query(Users).filter(Users.email == email).first():
        raise Conflict("User with this email already exists")

    user = Users(
        uid=generate_uid("user"),
        email=email,
        hashed_password=hash_password(request.password) if request.password else None,
        first_name=request.first_name,
        last_name=request.last_name,
        role=request.role,
        phone_number=request.phone_number,
        date_of_birth=request.date_of_birth,
        gender=request.gender,
        address=request.address.model_dump(mode="json") if request.address else None,
        is_active=request.is_active,
        is_verified=False,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info("Admin created %s user %s", user.role, user.uid)
    return {"message": "User created successfully", "user": _serialize(user)}


# ---------------- Get / Update / Delete ----------------
def get_user(db: Session, current_user: Users, uid: str):
    user = _get_user_or_404(db, uid)
    if current_user.role != "admin" and current_user.uid != uid:
        raise Forbidden("Access denied")
    return {"user": _serialize(user)}


def update_user(db: Session, current_user: Users, uid: str, body: Dict[str, Any]):
    user = _get_user_or_404(db, uid)
    if current_user.role != "admin" and current_user.uid != uid:
        raise Forbidden("Access denied")

    allowed = filter_fields("user", current_user.role, normalize_keys(body))
    update = validate_update(UserUpdate, allowed, "user update")
    apply_updates(user, update)
    db.commit()
    db.refresh(user)
    return {"message": "User updated successfully", "user": _serialize(user)}


def delete_user(db: Session, uid: str):
    user = _get_user_or_404(db, uid)
    summary = {"uid": user.uid, "email": user.email, "firstName": user.first_name, "lastName": user.last_name}
    db.delete(user)
    db.commit()
    logger.info("User %s deleted", uid)
    return {"message": "User deleted successfully", "user": summary}
