# fra_claims/storage/memory.py
"""
In-process store used when no DATABASE_URL is configured.

Reads return copies so callers never mutate stored state. None of the
mutating methods await between their check and their write, so they are
atomic with respect to the event loop.
"""

import logging
from decimal import Decimal
from typing import Any, Dict, List, Optional

from fra_claims.errors import DuplicateKeyError, NotFoundError
from fra_claims.models import new_id, utcnow
from fra_claims.schemas import (
    ClaimCreate,
    ClaimRecord,
    ClaimWithFiles,
    DashboardStats,
    FileCreate,
    FileRecord,
    FileStatus,
    UserCreate,
    UserRecord,
)
from fra_claims.storage.base import DEFAULT_CLAIMS_LIMIT, ClaimStore

logger = logging.getLogger(__name__)


class MemoryStore(ClaimStore):
    def __init__(self) -> None:
        self._users: Dict[str, UserRecord] = {}
        # newest first
        self._claims: List[ClaimRecord] = []
        self._files: Dict[str, FileRecord] = {}

    # -----------------------------
    # Users
    # -----------------------------
    async def get_user(self, user_id: str) -> Optional[UserRecord]:
        user = self._users.get(user_id)
        return user.model_copy() if user else None

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        for user in self._users.values():
            if user.username == username:
                return user.model_copy()
        return None

    async def create_user(self, data: UserCreate) -> UserRecord:
        if any(u.username == data.username for u in self._users.values()):
            raise DuplicateKeyError("Username already exists")
        user = UserRecord(
            id=new_id(),
            username=data.username,
            password=data.password,
            email=data.email,
            created_at=utcnow(),
        )
        self._users[user.id] = user
        return user.model_copy()

    # -----------------------------
    # Claims
    # -----------------------------
    def _find(self, claim_id: str) -> Optional[int]:
        for idx, claim in enumerate(self._claims):
            if claim.id == claim_id:
                return idx
        return None

    def _with_files(self, claim: ClaimRecord) -> ClaimWithFiles:
        files = sorted(
            (f.model_copy() for f in self._files.values() if f.claim_id == claim.id),
            key=lambda f: f.uploaded_at,
        )
        return ClaimWithFiles(**claim.model_dump(), files=files)

    async def get_claim(self, claim_id: str) -> Optional[ClaimWithFiles]:
        idx = self._find(claim_id)
        if idx is None:
            return None
        return self._with_files(self._claims[idx])

    async def get_claim_by_claim_id(self, code: str) -> Optional[ClaimRecord]:
        for claim in self._claims:
            if claim.claim_id == code:
                return claim.model_copy(deep=True)
        return None

    async def get_claims(self, limit: Optional[int] = DEFAULT_CLAIMS_LIMIT) -> List[ClaimWithFiles]:
        return [self._with_files(c) for c in self._claims[:limit]]

    async def create_claim(self, data: ClaimCreate) -> ClaimRecord:
        if any(c.claim_id == data.claim_id for c in self._claims):
            raise DuplicateKeyError("Claim ID already exists")
        now = utcnow()
        claim = ClaimRecord(**data.model_dump(), id=new_id(), created_at=now, updated_at=now)
        self._claims.insert(0, claim)
        return claim.model_copy(deep=True)

    async def update_claim(self, claim_id: str, changes: Dict[str, Any]) -> ClaimRecord:
        idx = self._find(claim_id)
        if idx is None:
            raise NotFoundError("Claim not found")
        current = self._claims[idx]

        code = changes.get("claim_id")
        if code and code != current.claim_id and any(c.claim_id == code for c in self._claims):
            raise DuplicateKeyError("Claim ID already exists")

        merged = current.model_dump()
        merged.update(changes)
        merged["id"] = current.id
        merged["created_at"] = current.created_at
        merged["updated_at"] = max(utcnow(), current.updated_at)
        updated = ClaimRecord.model_validate(merged)
        self._claims[idx] = updated
        return updated.model_copy(deep=True)

    async def delete_claim(self, claim_id: str) -> bool:
        idx = self._find(claim_id)
        if idx is None:
            return False
        del self._claims[idx]
        for file_id, f in list(self._files.items()):
            if f.claim_id == claim_id:
                self._files[file_id] = f.model_copy(update={"claim_id": None})
        return True

    # -----------------------------
    # Files
    # -----------------------------
    async def get_file(self, file_id: str) -> Optional[FileRecord]:
        f = self._files.get(file_id)
        return f.model_copy() if f else None

    async def get_files_by_claim_id(self, claim_id: str) -> List[FileRecord]:
        return [f.model_copy() for f in self._files.values() if f.claim_id == claim_id]

    async def create_file(self, data: FileCreate) -> FileRecord:
        f = FileRecord(**data.model_dump(), id=new_id(), uploaded_at=utcnow())
        self._files[f.id] = f
        return f.model_copy()

    async def update_file_status(self, file_id: str, status: FileStatus) -> FileRecord:
        f = self._files.get(file_id)
        if f is None:
            raise NotFoundError("File not found")
        f = f.model_copy(update={"status": status})
        self._files[file_id] = f
        return f.model_copy()

    async def link_file(self, file_id: str, claim_id: str) -> FileRecord:
        f = self._files.get(file_id)
        if f is None:
            raise NotFoundError("File not found")
        f = f.model_copy(update={"claim_id": claim_id})
        self._files[file_id] = f
        return f.model_copy()

    # -----------------------------
    # Dashboard
    # -----------------------------
    async def get_dashboard_stats(self) -> DashboardStats:
        total_area = sum((c.area for c in self._claims), Decimal("0"))
        return DashboardStats(
            total_claims=len(self._claims),
            processed=sum(1 for c in self._claims if c.status == "approved"),
            total_area=float(total_area),
            pending=sum(1 for c in self._claims if c.status == "pending"),
        )
