import logging
from typing import List

from fastapi import APIRouter, Body, Depends, HTTPException, Path, Query, Response, status

from fra_claims.deps import get_store
from fra_claims.errors import DuplicateKeyError, NotFoundError, ValidationError
from fra_claims.schemas import BoundaryIn, ClaimCreate, ClaimRecord, ClaimUpdate, ClaimWithFiles
from fra_claims.services import lifecycle
from fra_claims.storage.base import DEFAULT_CLAIMS_LIMIT, ClaimStore

router = APIRouter()
logger = logging.getLogger(__name__)


# =========================
# CLAIMS ROUTES
# =========================

@router.get("/claims", tags=["claims"], response_model=List[ClaimWithFiles])
async def get_claims(
    limit: int = Query(DEFAULT_CLAIMS_LIMIT, ge=1),
    store: ClaimStore = Depends(get_store),
):
    """
    Return claims newest first, each with its uploaded files.
    """
    try:
        return await store.get_claims(limit)
    except Exception:
        logger.exception("get_claims failed limit=%s", limit)
        raise HTTPException(status_code=500, detail="Failed to fetch claims")


@router.get("/claims/{claim_id}", tags=["claims"], response_model=ClaimWithFiles)
async def get_claim(claim_id: str = Path(...), store: ClaimStore = Depends(get_store)):
    try:
        claim = await store.get_claim(claim_id)
    except Exception:
        logger.exception("get_claim failed id=%s", claim_id)
        raise HTTPException(status_code=500, detail="Failed to fetch claim")
    if not claim:
        raise HTTPException(status_code=404, detail="Claim not found")
    return claim


@router.post(
    "/claims",
    tags=["claims"],
    response_model=ClaimRecord,
    status_code=status.HTTP_201_CREATED,
)
async def create_claim(payload: ClaimCreate = Body(...), store: ClaimStore = Depends(get_store)):
    """
    Create a claim directly (no review step).
    """
    try:
        return await store.create_claim(payload)
    except DuplicateKeyError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception("create_claim failed code=%s", payload.claim_id)
        raise HTTPException(status_code=400, detail="Failed to create claim")


@router.patch("/claims/{claim_id}", tags=["claims"], response_model=ClaimRecord)
async def update_claim(
    claim_id: str = Path(...),
    payload: ClaimUpdate = Body(...),
    store: ClaimStore = Depends(get_store),
):
    """
    Merge the provided fields into the claim. Status changes are not
    restricted to the documented transitions.
    """
    changes = payload.changes()
    logger.info("update_claim called id=%s fields=%s", claim_id, sorted(changes))
    try:
        return await lifecycle.update_claim(store, claim_id, changes)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except DuplicateKeyError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception("update_claim failed id=%s", claim_id)
        raise HTTPException(status_code=400, detail="Failed to update claim")


@router.delete("/claims/{claim_id}", tags=["claims"], status_code=status.HTTP_204_NO_CONTENT)
async def delete_claim(claim_id: str = Path(...), store: ClaimStore = Depends(get_store)):
    """
    Hard delete. Attached files stay but lose their link to the claim.
    """
    try:
        deleted = await store.delete_claim(claim_id)
    except Exception:
        logger.exception("delete_claim failed id=%s", claim_id)
        raise HTTPException(status_code=500, detail="Failed to delete claim")
    if not deleted:
        raise HTTPException(status_code=404, detail="Claim not found")
    return Response(status_code=204)


@router.post("/claims/{claim_id}/boundary", tags=["claims", "map"], response_model=ClaimRecord)
async def save_boundary(
    claim_id: str = Path(...),
    payload: BoundaryIn = Body(...),
    store: ClaimStore = Depends(get_store),
):
    """
    Save a GeoJSON geometry (polygon or point) on the claim, as sent.
    """
    try:
        return await lifecycle.attach_boundary(store, claim_id, payload.geometry)
    except ValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except Exception:
        logger.exception("save_boundary failed id=%s", claim_id)
        raise HTTPException(status_code=400, detail="Failed to save boundary")
