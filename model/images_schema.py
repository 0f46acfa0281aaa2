from datetime import datetime
from typing import Any, Dict, Literal, Optional

from model.schema_base import CamelModel

ImageCategory = Literal["xray", "mri", "ct_scan", "ultrasound", "photograph", "diagram", "other"]
ImageStatus = Literal["active", "archived", "deleted"]


class ImageUpdate(CamelModel):
    caption: Optional[str] = None
    alt_text: Optional[str] = None
    category: Optional[ImageCategory] = None
    is_primary: Optional[bool] = None
    order: Optional[int] = None
    status: Optional[ImageStatus] = None


class ImageOut(CamelModel):
    uid: str
    report_id: str
    patient_id: str
    file_name: str
    file_type: str
    file_size: int
    caption: Optional[str] = None
    alt_text: Optional[str] = None
    category: str
    metadata: Optional[Dict[str, Any]] = None
    is_primary: bool
    order: int
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_model(cls, image) -> "ImageOut":
        return cls(
            uid=image.uid,
            report_id=image.report.uid,
            patient_id=image.patient.uid,
            file_name=image.file_name,
            file_type=image.file_type,
            file_size=image.file_size,
            caption=image.caption,
            alt_text=image.alt_text,
            category=image.category,
            metadata=image.details,
            is_primary=image.is_primary,
            order=image.order,
            status=image.status,
            created_at=image.created_at,
            updated_at=image.updated_at,
        )
