# fra_claims/services/geojson.py
from typing import Any, Dict, Iterable

from fra_claims.schemas import ClaimRecord

FEATURE_PROPERTIES = (
    "id",
    "claimId",
    "claimantName",
    "village",
    "district",
    "state",
    "area",
    "status",
    "ocrConfidence",
)


def claim_feature(claim: ClaimRecord) -> Dict[str, Any]:
    data = claim.model_dump(by_alias=True, mode="json")
    return {
        "type": "Feature",
        "properties": {key: data.get(key) for key in FEATURE_PROPERTIES},
        "geometry": claim.boundary_geometry,
    }


def claims_feature_collection(claims: Iterable[ClaimRecord]) -> Dict[str, Any]:
    """FeatureCollection of the claims that carry boundary geometry."""
    return {
        "type": "FeatureCollection",
        "features": [claim_feature(c) for c in claims if c.boundary_geometry],
    }
