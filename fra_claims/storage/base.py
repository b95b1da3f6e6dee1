# fra_claims/storage/base.py
"""
Abstract store contract.

Handlers depend on `ClaimStore` only; the concrete backend (database or
in-memory) is picked once at startup and injected.
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

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

DEFAULT_CLAIMS_LIMIT = 50


class ClaimStore(ABC):
    async def init(self) -> None:
        """Prepare the backend (create tables, ...)."""

    async def close(self) -> None:
        """Release backend resources."""

    # Users
    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[UserRecord]: ...

    @abstractmethod
    async def get_user_by_username(self, username: str) -> Optional[UserRecord]: ...

    @abstractmethod
    async def create_user(self, data: UserCreate) -> UserRecord:
        """Raises DuplicateKeyError when the username is taken."""

    # Claims
    @abstractmethod
    async def get_claim(self, claim_id: str) -> Optional[ClaimWithFiles]: ...

    @abstractmethod
    async def get_claim_by_claim_id(self, code: str) -> Optional[ClaimRecord]: ...

    @abstractmethod
    async def get_claims(self, limit: Optional[int] = DEFAULT_CLAIMS_LIMIT) -> List[ClaimWithFiles]:
        """Newest first, each with its files. `limit=None` returns every claim."""

    @abstractmethod
    async def create_claim(self, data: ClaimCreate) -> ClaimRecord:
        """Raises DuplicateKeyError when the claim code exists; nothing is written."""

    @abstractmethod
    async def update_claim(self, claim_id: str, changes: Dict[str, Any]) -> ClaimRecord:
        """
        Merge `changes` (snake_case field names) into the claim and refresh
        `updated_at`. Raises NotFoundError / DuplicateKeyError.
        """

    @abstractmethod
    async def delete_claim(self, claim_id: str) -> bool:
        """Hard delete; files keep existing but lose their link."""

    # Files
    @abstractmethod
    async def get_file(self, file_id: str) -> Optional[FileRecord]: ...

    @abstractmethod
    async def get_files_by_claim_id(self, claim_id: str) -> List[FileRecord]: ...

    @abstractmethod
    async def create_file(self, data: FileCreate) -> FileRecord: ...

    @abstractmethod
    async def update_file_status(self, file_id: str, status: FileStatus) -> FileRecord:
        """Raises NotFoundError for an unknown file id."""

    @abstractmethod
    async def link_file(self, file_id: str, claim_id: str) -> FileRecord:
        """Raises NotFoundError for an unknown file id."""

    # Dashboard
    @abstractmethod
    async def get_dashboard_stats(self) -> DashboardStats: ...
