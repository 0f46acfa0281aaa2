from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from Controller import user_controller
from core.auth_utils import get_current_admin, get_current_user
from database import get_db
from model.user_model import Users
from model.user_schema import UserCreate

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("")
def list_users(
    role: Optional[str] = None,
    is_active: Optional[bool] = Query(None, alias="isActive"),
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    user: Users = Depends(get_current_user),
):
    return user_controller.list_users(db, user, role, is_active, search, page, limit)


@router.post("")
def create_user(request: UserCreate, db: Session = Depends(get_db), user: Users = Depends(get_current_admin)):
    return user_controller.create_user(db, request)


@router.get("/{uid}")
def get_user(uid: str, db: Session = Depends(get_db), user: Users = Depends(get_current_user)):
    return user_controller.get_user(db, user, uid)


@router.put("/{uid}")
def update_user(
    uid: str,
    body: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    user: Users = Depends(get_current_user),
):
    return user_controller.update_user(db, user, uid, body)


@router.delete("/{uid}")
def delete_user(uid: str, db: Session = Depends(get_db), user: Users = Depends(get_current_admin)):
    return user_controller.delete_user(db, uid)
