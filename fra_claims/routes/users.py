import logging

from fastapi import APIRouter, Body, Depends, HTTPException, Path, status

from fra_claims.deps import get_store
from fra_claims.errors import DuplicateKeyError
from fra_claims.schemas import UserCreate, UserRecord
from fra_claims.security import hash_password
from fra_claims.storage.base import ClaimStore

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post(
    "/users",
    tags=["users"],
    response_model=UserRecord,
    status_code=status.HTTP_201_CREATED,
)
async def create_user(payload: UserCreate = Body(...), store: ClaimStore = Depends(get_store)):
    """
    Register a user. The password is stored as a hash and never returned.
    """
    data = payload.model_copy(update={"password": hash_password(payload.password)})
    try:
        return await store.create_user(data)
    except DuplicateKeyError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception:
        logger.exception("create_user failed username=%s", payload.username)
        raise HTTPException(status_code=500, detail="Failed to create user")


@router.get("/users/{user_id}", tags=["users"], response_model=UserRecord)
async def get_user(user_id: str = Path(...), store: ClaimStore = Depends(get_store)):
    try:
        user = await store.get_user(user_id)
    except Exception:
        logger.exception("get_user failed id=%s", user_id)
        raise HTTPException(status_code=500, detail="Failed to fetch user")
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    return user
