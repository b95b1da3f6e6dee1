# fra_claims/schemas.py
"""
Pydantic models for the wire format and the store contract.

JSON uses camelCase (`claimId`, `claimantName`, ...); input accepts either
camelCase or the snake_case field names.
"""

from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

ClaimStatus = Literal["pending", "approved", "rejected", "review_required"]
FileStatus = Literal["uploaded", "processing", "processed", "failed"]

_CENT = Decimal("0.01")


def _quantize_area(v: Optional[Decimal]) -> Optional[Decimal]:
    if v is None:
        return None
    return v.quantize(_CENT, rounding=ROUND_HALF_UP)


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


# -----------------------------
# Users
# -----------------------------
class UserCreate(CamelModel):
    username: str = Field(min_length=1, max_length=128)
    password: str = Field(min_length=1, max_length=256)
    email: Optional[EmailStr] = None


class UserRecord(CamelModel):
    id: str
    username: str
    password: str = Field(exclude=True)
    email: Optional[str] = None
    created_at: datetime


# -----------------------------
# Files
# -----------------------------
class FileCreate(CamelModel):
    filename: str
    original_name: str
    mimetype: str
    size: int = Field(ge=0)
    status: FileStatus = "uploaded"
    claim_id: Optional[str] = None
    user_id: Optional[str] = None


class FileRecord(FileCreate):
    id: str
    uploaded_at: datetime


# -----------------------------
# Claims
# -----------------------------
class ClaimCreate(CamelModel):
    claim_id: str = Field(min_length=1)
    claimant_name: str = Field(min_length=1)
    village: str = Field(min_length=1)
    district: Optional[str] = None
    state: Optional[str] = None
    area: Decimal = Field(ge=0)
    survey_number: Optional[str] = None
    status: ClaimStatus = "pending"
    ocr_confidence: Optional[int] = Field(default=None, ge=0, le=100)
    boundary_geometry: Optional[Dict[str, Any]] = None
    raw_ocr_text: Optional[str] = None
    user_id: Optional[str] = None

    @field_validator("area")
    @classmethod
    def round_area(cls, v):
        return _quantize_area(v)


# columns that cannot be cleared by a partial update
_NOT_NULL = ("claim_id", "claimant_name", "village", "area", "status")


class ClaimUpdate(CamelModel):
    claim_id: Optional[str] = Field(default=None, min_length=1)
    claimant_name: Optional[str] = Field(default=None, min_length=1)
    village: Optional[str] = Field(default=None, min_length=1)
    district: Optional[str] = None
    state: Optional[str] = None
    area: Optional[Decimal] = Field(default=None, ge=0)
    survey_number: Optional[str] = None
    status: Optional[ClaimStatus] = None
    ocr_confidence: Optional[int] = Field(default=None, ge=0, le=100)
    boundary_geometry: Optional[Dict[str, Any]] = None
    raw_ocr_text: Optional[str] = None
    user_id: Optional[str] = None

    @field_validator("area")
    @classmethod
    def round_area(cls, v):
        return _quantize_area(v)

    @model_validator(mode="after")
    def required_columns_not_null(self):
        for name in _NOT_NULL:
            if name in self.model_fields_set and getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} cannot be null")
        return self

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_unset=True)


class ClaimRecord(ClaimCreate):
    id: str
    created_at: datetime
    updated_at: datetime


class ClaimWithFiles(ClaimRecord):
    files: List[FileRecord] = Field(default_factory=list)


class BoundaryIn(CamelModel):
    geometry: Optional[Dict[str, Any]] = None


class DashboardStats(CamelModel):
    total_claims: int
    processed: int
    total_area: float
    pending: int


# -----------------------------
# Intake / review
# -----------------------------
class ExtractedRecord(CamelModel):
    claimant_name: str
    village: str
    claim_id: str
    area: str
    survey_number: Optional[str] = None
    district: Optional[str] = None
    state: Optional[str] = None
    raw_text: str
    confidence: int = Field(ge=0, le=100)


class ExtractionCorrections(CamelModel):
    claimant_name: Optional[str] = None
    village: Optional[str] = None
    claim_id: Optional[str] = None
    area: Optional[str] = None
    survey_number: Optional[str] = None
    district: Optional[str] = None
    state: Optional[str] = None
    raw_text: Optional[str] = None


class ReprocessIn(CamelModel):
    file_id: str = Field(min_length=1)
    corrections: ExtractionCorrections = Field(default_factory=ExtractionCorrections)


class ReviewedExtraction(CamelModel):
    """Reviewer-confirmed extraction submitted to create a claim."""

    claim_id: str = Field(min_length=1)
    claimant_name: str = Field(min_length=1)
    village: str = Field(min_length=1)
    area: Decimal = Field(ge=0)
    district: Optional[str] = None
    state: Optional[str] = None
    survey_number: Optional[str] = None
    confidence: Optional[int] = Field(default=None, ge=0, le=100)
    raw_text: Optional[str] = None
    file_id: Optional[str] = None

    @field_validator("area")
    @classmethod
    def round_area(cls, v):
        return _quantize_area(v)


class UploadResult(CamelModel):
    file: FileRecord
    ocr_result: ExtractedRecord


class EntitiesIn(CamelModel):
    text: str = ""
