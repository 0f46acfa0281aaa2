from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, File, Form, Query, UploadFile
from sqlalchemy.orm import Session

from Controller import images_controller
from core.auth_utils import get_current_admin, get_current_user, require_roles
from database import get_db
from model.user_model import Users
from services.file_store import FileStore, get_file_store

router = APIRouter(prefix="/images", tags=["Images"])


# ---------------- List ----------------
@router.get("")
def list_images(
    report_id: Optional[str] = Query(None, alias="reportId"),
    patient_id: Optional[str] = Query(None, alias="patientId"),
    category: Optional[str] = None,
    status: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
    user: Users = Depends(get_current_user),
):
    return images_controller.list_images(db, user, report_id, patient_id, category, status, page, limit)


# ---------------- Upload (doctor / admin) ----------------
@router.post("")
async def upload_image(
    file: UploadFile = File(...),
    report_id: str = Form(..., alias="reportId"),
    patient_id: str = Form(..., alias="patientId"),
    category: str = Form(...),
    caption: Optional[str] = Form(None),
    alt_text: Optional[str] = Form(None, alias="altText"),
    is_primary: bool = Form(False, alias="isPrimary"),
    order: int = Form(0),
    db: Session = Depends(get_db),
    user: Users = Depends(require_roles("doctor", "admin")),
    store: FileStore = Depends(get_file_store),
):
    """
    Stores an image attached to a report; ``isPrimary=true`` demotes the report's current primary image.
    """
    return await images_controller.upload_image(
        db, user, store, file, report_id, patient_id, category,
        caption=caption, alt_text=alt_text, is_primary=is_primary, order=order,
    )


# ---------------- Get / download ----------------
@router.get("/{uid}")
def get_image(
    uid: str,
    download: bool = False,
    db: Session = Depends(get_db),
    user: Users = Depends(get_current_user),
    store: FileStore = Depends(get_file_store),
):
    return images_controller.get_image(db, user, store, uid, download)


# ---------------- Update / Delete ----------------
@router.put("/{uid}")
def update_image(
    uid: str,
    body: Dict[str, Any] = Body(...),
    db: Session = Depends(get_db),
    user: Users = Depends(require_roles("doctor", "admin")),
):
    return images_controller.update_image(db, user, uid, body)


@router.delete("/{uid}")
def delete_image(
    uid: str,
    db: Session = Depends(get_db),
    user: Users = Depends(get_current_admin),
    store: FileStore = Depends(get_file_store),
):
    return images_controller.delete_image(db, store, uid)
