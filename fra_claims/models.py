# fra_claims/models.py
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Column,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()

CLAIM_STATUSES = ("pending", "approved", "rejected", "review_required")
FILE_STATUSES = ("uploaded", "processing", "processed", "failed")


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    # naive UTC, same shape SQLite hands back
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=new_id)
    username = Column(String, nullable=False, unique=True, index=True)
    password = Column(String, nullable=False)
    email = Column(String, nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False)

    claims = relationship("Claim", back_populates="user")
    uploaded_files = relationship("UploadedFile", back_populates="user")


class Claim(Base):
    __tablename__ = "claims"

    id = Column(String(36), primary_key=True, default=new_id)

    # Human-readable claim code, e.g. FRA-2024-001
    claim_id = Column(String, nullable=False, unique=True, index=True)
    claimant_name = Column(String, nullable=False)
    village = Column(String, nullable=False, index=True)
    district = Column(String, nullable=True)
    state = Column(String, nullable=True)
    area = Column(Numeric(10, 2), nullable=False)  # hectares
    survey_number = Column(String, nullable=True)
    status = Column(
        Enum(*CLAIM_STATUSES, name="claim_status"),
        default="pending",
        nullable=False,
        index=True,
    )

    # Provenance
    ocr_confidence = Column(Integer, nullable=True)
    boundary_geometry = Column(JSON, nullable=True)  # GeoJSON geometry, verbatim
    raw_ocr_text = Column(Text, nullable=True)

    user_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime, default=utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=utcnow, nullable=False)

    user = relationship("User", back_populates="claims")
    files = relationship(
        "UploadedFile",
        back_populates="claim",
        order_by="UploadedFile.uploaded_at",
    )

    __table_args__ = (
        Index("ix_claims_state_district_village", "state", "district", "village"),
    )


class UploadedFile(Base):
    __tablename__ = "uploaded_files"

    id = Column(String(36), primary_key=True, default=new_id)
    filename = Column(String, nullable=False)
    original_name = Column(String, nullable=False)
    mimetype = Column(String, nullable=False)
    size = Column(Integer, nullable=False)  # bytes
    status = Column(
        Enum(*FILE_STATUSES, name="file_status"),
        default="uploaded",
        nullable=False,
    )
    claim_id = Column(String(36), ForeignKey("claims.id"), nullable=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id"), nullable=True)
    uploaded_at = Column(DateTime, default=utcnow, nullable=False)

    claim = relationship("Claim", back_populates="files")
    user = relationship("User", back_populates="uploaded_files")
