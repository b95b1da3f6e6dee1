# fra_claims/services/lifecycle.py
"""
Claim and upload lifecycle.

Documented transitions:
    claims: pending -> approved | rejected | review_required
    files:  uploaded -> processing -> processed | failed

They are not enforced. Re-approval and backward moves (approved -> pending)
are applied as requested; anything off the documented paths is logged.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Optional

from fra_claims.errors import NotFoundError, ProcessingError, ValidationError
from fra_claims.schemas import (
    ClaimCreate,
    ClaimRecord,
    ExtractedRecord,
    FileCreate,
    FileRecord,
    FileStatus,
    ReviewedExtraction,
)
from fra_claims.services.intake import IntakeEngine
from fra_claims.storage.base import ClaimStore

logger = logging.getLogger(__name__)

CLAIM_TRANSITIONS = {
    "pending": {"approved", "rejected", "review_required"},
    "approved": set(),
    "rejected": set(),
    "review_required": set(),
}

FILE_TRANSITIONS = {
    "uploaded": {"processing"},
    "processing": {"processed", "failed"},
    "processed": set(),
    "failed": set(),
}


def is_documented(transitions: Dict[str, set], current: str, target: str) -> bool:
    return current == target or target in transitions.get(current, set())


def _clean(s: Optional[str]) -> Optional[str]:
    if s is None:
        return None
    s = " ".join(s.split())
    return s or None


async def update_claim(store: ClaimStore, claim_id: str, changes: Dict[str, Any]) -> ClaimRecord:
    """Partial update; status changes off the documented paths are logged, not refused."""
    target = changes.get("status")
    if target is not None:
        current = await store.get_claim(claim_id)
        if current is None:
            raise NotFoundError("Claim not found")
        if not is_documented(CLAIM_TRANSITIONS, current.status, target):
            logger.warning(
                "undocumented claim transition id=%s %s -> %s", claim_id, current.status, target
            )
    return await store.update_claim(claim_id, changes)


async def set_file_status(store: ClaimStore, file: FileRecord, status: FileStatus) -> FileRecord:
    if not is_documented(FILE_TRANSITIONS, file.status, status):
        logger.warning("undocumented file transition id=%s %s -> %s", file.id, file.status, status)
    updated = await store.update_file_status(file.id, status)
    logger.info("file %s status %s -> %s", file.id, file.status, status)
    return updated


async def record_upload(
    store: ClaimStore,
    intake: IntakeEngine,
    stored_path: Path,
    data: FileCreate,
):
    """
    Create the file record and run intake on it.

    Returns (file, extracted). Any intake failure leaves the file `failed`
    and surfaces as a ProcessingError carrying it as `.file`.
    """
    file = await store.create_file(data)
    file = await set_file_status(store, file, "processing")
    try:
        extracted = await intake.process_file(stored_path, data.mimetype)
    except ProcessingError as e:
        failed = await set_file_status(store, file, "failed")
        raise ProcessingError(str(e), file=failed) from e
    except Exception as e:
        logger.exception("intake crashed on file %s", file.id)
        failed = await set_file_status(store, file, "failed")
        raise ProcessingError("OCR processing failed", file=failed) from e
    file = await set_file_status(store, file, "processed")
    return file, extracted


async def save_reviewed_extraction(store: ClaimStore, review: ReviewedExtraction) -> ClaimRecord:
    """
    Create a pending claim from reviewer-confirmed extraction data and link
    the source upload, if any, to it.
    """
    if review.file_id is not None:
        file = await store.get_file(review.file_id)
        if file is None:
            raise NotFoundError("File not found")
    else:
        file = None

    code = review.claim_id.strip()
    claimant = _clean(review.claimant_name)
    village = _clean(review.village)
    if not (code and claimant and village):
        raise ValidationError("Missing required claim data")

    claim = await store.create_claim(
        ClaimCreate(
            claim_id=code,
            claimant_name=claimant,
            village=village,
            district=_clean(review.district),
            state=_clean(review.state),
            area=review.area,
            survey_number=_clean(review.survey_number),
            status="pending",
            ocr_confidence=review.confidence,
            boundary_geometry=None,
            raw_ocr_text=review.raw_text or None,
        )
    )

    if file is not None:
        await store.link_file(file.id, claim.id)
        await set_file_status(store, file, "processed")
    return claim


async def attach_boundary(
    store: ClaimStore, claim_id: str, geometry: Optional[Dict[str, Any]]
) -> ClaimRecord:
    """Store raw GeoJSON geometry on a claim, verbatim."""
    if not geometry:
        raise ValidationError("Geometry is required")
    return await store.update_claim(claim_id, {"boundary_geometry": geometry})


async def reprocess_upload(
    store: ClaimStore,
    intake: IntakeEngine,
    upload_dir: Path,
    file_id: str,
    corrections,
) -> ExtractedRecord:
    file = await store.get_file(file_id)
    if file is None:
        raise NotFoundError("File not found")
    return await intake.reprocess_with_corrections(upload_dir / file.filename, corrections)
