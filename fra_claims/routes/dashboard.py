import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from fra_claims.deps import get_store
from fra_claims.schemas import DashboardStats
from fra_claims.services.geojson import claims_feature_collection
from fra_claims.storage.base import ClaimStore

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/dashboard/stats", tags=["dashboard"], response_model=DashboardStats)
async def dashboard_stats(store: ClaimStore = Depends(get_store)):
    """
    totalClaims, processed (approved), totalArea (hectares) and pending counts.
    """
    try:
        return await store.get_dashboard_stats()
    except Exception:
        logger.exception("dashboard_stats failed")
        raise HTTPException(status_code=500, detail="Failed to fetch dashboard stats")


@router.get("/map/claims", tags=["map"])
async def map_claims(
    limit: Optional[int] = Query(None, ge=1),
    store: ClaimStore = Depends(get_store),
):
    """
    GeoJSON FeatureCollection of claims that have a saved boundary.
    Unlike /claims, every claim is considered unless `limit` is given.
    """
    try:
        claims = await store.get_claims(limit)
        return claims_feature_collection(claims)
    except Exception:
        logger.exception("map_claims failed limit=%s", limit)
        raise HTTPException(status_code=500, detail="Failed to fetch map data")
