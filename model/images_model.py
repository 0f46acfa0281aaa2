# model/images_model.py
from sqlalchemy import Column, Integer, String, Boolean, ForeignKey, JSON, Index, text
from sqlalchemy.orm import relationship
from database import Base
from model.common import TimestampMixin

IMAGE_CATEGORIES = ("xray", "mri", "ct_scan", "ultrasound", "photograph", "diagram", "other")
IMAGE_STATUSES = ("active", "archived", "deleted")


class Images(TimestampMixin, Base):
    __tablename__ = "images"
    __table_args__ = (
        # at most one primary image per report
        Index(
            "uq_images_primary_per_report",
            "report_id",
            unique=True,
            postgresql_where=text("is_primary"),
            sqlite_where=text("is_primary = 1"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    uid = Column(String(80), unique=True, nullable=False, index=True)
    report_id = Column(Integer, ForeignKey("reports.id", ondelete="CASCADE"), nullable=False, index=True)
    patient_id = Column(Integer, ForeignKey("patients.id", ondelete="CASCADE"), nullable=False, index=True)

    file_name = Column(String(300), nullable=False)
    file_type = Column(String(100), nullable=False)
    file_size = Column(Integer, nullable=False)
    file_ref = Column(String(100), nullable=False)
    caption = Column(String(500))
    alt_text = Column(String(500))
    category = Column(String(20), nullable=False)
    details = Column("metadata", JSON)
    is_primary = Column(Boolean, default=False, nullable=False)
    order = Column(Integer, default=0, nullable=False)
    status = Column(String(20), default="active", nullable=False)

    report = relationship("Reports", back_populates="images")
    patient = relationship("Patients")
