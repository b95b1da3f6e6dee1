import logging
import uuid
from pathlib import Path as PPath
from typing import Optional

from fastapi import APIRouter, Body, Depends, File, HTTPException, UploadFile, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError as SchemaError

from fra_claims.config import Settings
from fra_claims.deps import get_intake, get_settings, get_store
from fra_claims.errors import (
    DuplicateKeyError,
    FileTooLargeError,
    NotFoundError,
    ProcessingError,
    UnsupportedMediaError,
    ValidationError,
)
from fra_claims.schemas import (
    ClaimRecord,
    EntitiesIn,
    ExtractedRecord,
    FileCreate,
    ReprocessIn,
    ReviewedExtraction,
    UploadResult,
)
from fra_claims.services import lifecycle
from fra_claims.services.intake import IntakeEngine, extract_entities
from fra_claims.storage.base import ClaimStore

router = APIRouter()
logger = logging.getLogger(__name__)


def check_upload(mimetype: str, size: int, settings: Settings) -> None:
    """Reject disallowed types and oversize files before anything is stored."""
    if mimetype not in settings.allowed_mime_types:
        raise UnsupportedMediaError("Invalid file type. Only PDF, JPG, and PNG files are allowed.")
    if size > settings.max_upload_bytes:
        limit_mb = settings.max_upload_bytes / (1024 * 1024)
        raise FileTooLargeError(f"File too large. Maximum size is {limit_mb:g} MB.")


# -------------------------
# FRA document upload -> intake (no claim is created here)
# -------------------------
@router.post("/upload", tags=["upload"], response_model=UploadResult)
async def upload_file(
    file: Optional[UploadFile] = File(None),
    store: ClaimStore = Depends(get_store),
    intake: IntakeEngine = Depends(get_intake),
    settings: Settings = Depends(get_settings),
):
    """
    Store the upload, run intake on it and return the file record with the
    extracted fields for review. The claim is created later via /ocr/save.
    """
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")

    mimetype = (file.content_type or "").lower()
    # read one byte past the cap so oversize files are detectable
    content = await file.read(settings.max_upload_bytes + 1)
    try:
        check_upload(mimetype, len(content), settings)
    except ValidationError as e:
        logger.info("upload rejected name=%s type=%s: %s", file.filename, mimetype, e)
        raise HTTPException(status_code=400, detail=str(e))

    stored_name = f"{uuid.uuid4().hex}{PPath(file.filename).suffix.lower()}"
    stored_path = settings.upload_dir / stored_name
    try:
        settings.upload_dir.mkdir(parents=True, exist_ok=True)
        with open(stored_path, "wb") as f:
            f.write(content)
    except OSError:
        logger.exception("failed to write upload %s", stored_path)
        raise HTTPException(status_code=500, detail="Upload failed")

    data = FileCreate(
        filename=stored_name,
        original_name=file.filename,
        mimetype=mimetype,
        size=len(content),
        status="uploaded",
        claim_id=None,
        user_id=None,  # no auth yet
    )
    try:
        uploaded, extracted = await lifecycle.record_upload(store, intake, stored_path, data)
    except ProcessingError as e:
        logger.error("intake failed for %s: %s", stored_name, e)
        body = {"message": "OCR processing failed", "detail": "OCR processing failed"}
        if e.file is not None:
            body["file"] = e.file.model_dump(by_alias=True, mode="json")
        return JSONResponse(status_code=500, content=body)
    except Exception:
        # no file record points at the binary, drop it
        logger.exception("upload failed for %s", stored_name)
        stored_path.unlink(missing_ok=True)
        raise HTTPException(status_code=500, detail="Upload failed")

    return UploadResult(file=uploaded, ocr_result=extracted)


# -------------------------
# Review step: reviewed extraction -> claim
# -------------------------
@router.post(
    "/ocr/save",
    tags=["ocr"],
    response_model=ClaimRecord,
    status_code=status.HTTP_201_CREATED,
)
async def save_ocr_data(payload: dict = Body(...), store: ClaimStore = Depends(get_store)):
    """
    Create a pending claim from reviewer-confirmed extraction data.
    Required: claimId, claimantName, village, area. Optional fileId links the
    source upload to the new claim and marks it processed.
    """
    try:
        review = ReviewedExtraction.model_validate(payload)
    except SchemaError:
        raise HTTPException(status_code=400, detail="Missing required claim data")

    try:
        return await lifecycle.save_reviewed_extraction(store, review)
    except DuplicateKeyError:
        raise HTTPException(status_code=400, detail="Claim ID already exists")
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception:
        logger.exception("save_ocr_data failed code=%s", review.claim_id)
        raise HTTPException(status_code=400, detail="Failed to save claim data")


@router.post("/ocr/reprocess", tags=["ocr"], response_model=ExtractedRecord)
async def reprocess_file(
    payload: ReprocessIn = Body(...),
    store: ClaimStore = Depends(get_store),
    intake: IntakeEngine = Depends(get_intake),
    settings: Settings = Depends(get_settings),
):
    """
    Re-run intake on a stored upload and overlay manual corrections.
    """
    try:
        return await lifecycle.reprocess_upload(
            store, intake, settings.upload_dir, payload.file_id, payload.corrections
        )
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ProcessingError as e:
        logger.error("reprocess failed file=%s: %s", payload.file_id, e)
        raise HTTPException(status_code=500, detail="OCR processing failed")
    except Exception:
        logger.exception("reprocess failed file=%s", payload.file_id)
        raise HTTPException(status_code=500, detail="OCR processing failed")


@router.post("/ocr/entities", tags=["ocr"])
async def ocr_entities(payload: EntitiesIn = Body(...)):
    """
    Labelled entities (villages, names, areas, ids) found in recognized text.
    """
    return extract_entities(payload.text)
