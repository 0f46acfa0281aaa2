import io
import logging
import math
from typing import Any, Dict, Optional

from fastapi import UploadFile
from fastapi.responses import StreamingResponse
from PIL import Image, UnidentifiedImageError
from sqlalchemy.orm import Session

from core.config import MAX_IMAGE_BYTES
from core.errors import Forbidden, NotFound, ServiceUnavailable, ValidationFailed
from core.permissions import filter_fields
from model.common import generate_uid
from model.images_model import Images, IMAGE_CATEGORIES, IMAGE_STATUSES
from model.images_schema import ImageOut, ImageUpdate
from model.patient_model import Patients
from model.report_model import Reports
from model.schema_base import apply_updates, normalize_keys, validate_update
from model.user_model import Users
from services.file_store import FileStore, FileStoreError, content_disposition
from Controller.report_controller import commit_or_discard, read_upload

logger = logging.getLogger(__name__)

ALLOWED_IMAGE_TYPES = ("image/jpeg", "image/png", "image/gif", "image/webp", "image/bmp")


def _serialize(image: Images) -> dict:
    return ImageOut.from_model(image).model_dump(by_alias=True, mode="json")


def _get_image_or_404(db: Session, uid: str) -> Images:
    image = db.query(Images).filter(Images.uid == uid).first()
    if not image:
        raise NotFound("Image not found")
    return image


# ---------------- Validation ----------------
def inspect_image(content: bytes) -> Dict[str, Any]:
    """Checks the bytes really are an image and returns width/height/format."""
    try:
        Image.open(io.BytesIO(content)).verify()
        # verify() leaves the image unusable, so reopen for the size
        with Image.open(io.BytesIO(content)) as img:
            return {"width": img.width, "height": img.height, "format": img.format}
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
        raise ValidationFailed("File is not a valid image")


def _clear_primary(db: Session, report_id: int, keep_uid: Optional[str] = None):
    # one primary image per report
    query = db.query(Images).filter(Images.report_id == report_id, Images.is_primary.is_(True))
    if keep_uid:
        query = query.filter(Images.uid != keep_uid)
    query.update({Images.is_primary: False}, synchronize_session="fetch")
    db.flush()


# ---------------- List ----------------
def list_images(db: Session, user: Users, report_id: Optional[str] = None, patient_id: Optional[str] = None,
                category: Optional[str] = None, status: Optional[str] = None, page: int = 1, limit: int = 10):
    query = db.query(Images)
    if report_id:
        query = query.filter(Images.report.has(uid=report_id))
    if patient_id:
        query = query.filter(Images.patient.has(uid=patient_id))
    if category:
        query = query.filter(Images.category == category)
    if status:
        query = query.filter(Images.status == status)

    if user.role == "patient":
        if not user.patient:
            return {"images": [], "pagination": {"page": page, "limit": limit, "total": 0, "pages": 0}}
        query = query.filter(Images.patient_id == user.patient.id)

    total = query.count()
    images = query.order_by(Images.created_at.desc()).offset((page - 1) * limit).limit(limit).all()
    return {
        "images": [_serialize(i) for i in images],
        "pagination": {"page": page, "limit": limit, "total": total, "pages": math.ceil(total / limit)},
    }


# ---------------- Upload (doctor / admin) ----------------
async def upload_image(db: Session, user: Users, store: FileStore, file: UploadFile, report_id: str,
                       patient_id: str, category: str, caption: Optional[str] = None,
                       alt_text: Optional[str] = None, is_primary: bool = False, order: int = 0):
    report = db.query(Reports).filter(Reports.uid == report_id).first()
    if not report:
        raise NotFound("Report not found")
    patient = db.query(Patients).filter(Patients.uid == patient_id).first()
    if not patient:
        raise NotFound("Patient not found")
    if category not in IMAGE_CATEGORIES:
        raise ValidationFailed("Invalid image category")

    content = await read_upload(
        file, ALLOWED_IMAGE_TYPES, MAX_IMAGE_BYTES,
        "Invalid file type. Only image files are allowed",
        f"File size too large. Maximum size is {MAX_IMAGE_BYTES // (1024 * 1024)}MB",
    )
    details = inspect_image(content)

    uid = generate_uid("img")
    try:
        file_ref = await store.save(content, file.filename, file.content_type, {
            "patientId": patient.uid,
            "reportUid": report.uid,
            "imageUid": uid,
        })
    except FileStoreError:
        raise ServiceUnavailable("File storage is unavailable")

    if is_primary:
        _clear_primary(db, report.id)

    image = Images(
        uid=uid,
        report_id=report.id,
        patient_id=patient.id,
        file_name=file.filename,
        file_type=file.content_type,
        file_size=len(content),
        file_ref=file_ref,
        caption=caption,
        alt_text=alt_text,
        category=category,
        details=details,
        is_primary=is_primary,
        order=order,
        status="active",
    )
    db.add(image)
    commit_or_discard(db, store, file_ref)
    db.refresh(image)
    logger.info("Image %s uploaded to report %s", uid, report.uid)
    return {"message": "Image uploaded successfully", "image": _serialize(image)}


# ---------------- Get / download ----------------
def _can_read_image(image: Images, user: Users) -> bool:
    if user.role in ("doctor", "admin"):
        return True
    return image.patient.user_id == user.id


def get_image(db: Session, user: Users, store: FileStore, uid: str, download: bool = False):
    image = _get_image_or_404(db, uid)
    if not _can_read_image(image, user):
        raise Forbidden("Access denied")
    if not download:
        return {"image": _serialize(image)}

    if not image.file_ref or not store.exists(image.file_ref):
        raise NotFound("File not found")
    headers = {
        "Content-Disposition": content_disposition(image.file_name),
        "Content-Length": str(image.file_size),
        "Cache-Control": "public, max-age=31536000",
    }
    return StreamingResponse(store.stream(image.file_ref), media_type=image.file_type, headers=headers)


# ---------------- Update / Delete ----------------
def update_image(db: Session, user: Users, uid: str, body: Dict[str, Any]):
    image = _get_image_or_404(db, uid)

    allowed = filter_fields("image", user.role, normalize_keys(body))
    if allowed.get("category") and allowed["category"] not in IMAGE_CATEGORIES:
        raise ValidationFailed("Invalid image category")
    if allowed.get("status") and allowed["status"] not in IMAGE_STATUSES:
        raise ValidationFailed("Invalid image status")
    update = validate_update(ImageUpdate, allowed, "image update")

    if update.is_primary:
        _clear_primary(db, image.report_id, keep_uid=image.uid)
    apply_updates(image, update)
    db.commit()
    db.refresh(image)
    return {"message": "Image updated successfully", "image": _serialize(image)}


def delete_image(db: Session, store: FileStore, uid: str):
    image = _get_image_or_404(db, uid)
    file_ref = image.file_ref
    db.delete(image)
    db.commit()
    if file_ref:
        store.delete(file_ref)
    logger.info("Image %s deleted", uid)
    return {"message": "Image deleted successfully", "image": {"uid": uid}}
