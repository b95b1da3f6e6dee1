# fra_claims/storage/database.py
"""Relational backend on the SQLAlchemy async ORM."""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import delete, func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncEngine
from sqlalchemy.orm import selectinload

from fra_claims.db import make_session_factory
from fra_claims.errors import DuplicateKeyError, NotFoundError, ValidationError
from fra_claims.models import Base, Claim, UploadedFile, User, utcnow
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


class DatabaseStore(ClaimStore):
    def __init__(self, engine: AsyncEngine) -> None:
        self.engine = engine
        self._sessions = make_session_factory(engine)

    async def init(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        await self.engine.dispose()

    # -----------------------------
    # Users
    # -----------------------------
    async def get_user(self, user_id: str) -> Optional[UserRecord]:
        async with self._sessions() as session:
            user = await session.get(User, user_id)
            return UserRecord.model_validate(user) if user else None

    async def get_user_by_username(self, username: str) -> Optional[UserRecord]:
        async with self._sessions() as session:
            res = await session.execute(select(User).where(User.username == username))
            user = res.scalar_one_or_none()
            return UserRecord.model_validate(user) if user else None

    async def create_user(self, data: UserCreate) -> UserRecord:
        async with self._sessions() as session:
            res = await session.execute(select(User.id).where(User.username == data.username))
            if res.first() is not None:
                raise DuplicateKeyError("Username already exists")

            user = User(username=data.username, password=data.password, email=data.email)
            session.add(user)
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                raise DuplicateKeyError("Username already exists")
            return UserRecord.model_validate(user)

    # -----------------------------
    # Claims
    # -----------------------------
    @staticmethod
    async def _code_taken(session, code: str) -> bool:
        res = await session.execute(select(Claim.id).where(Claim.claim_id == code))
        return res.first() is not None

    async def _raise_integrity(self, session, code: Optional[str], exc: IntegrityError) -> None:
        """Map a failed claim write to DuplicateKeyError or ValidationError."""
        if code and await self._code_taken(session, code):
            raise DuplicateKeyError("Claim ID already exists") from exc
        logger.warning("claim write violated a constraint: %s", exc.orig)
        raise ValidationError("Claim violates a data constraint") from exc

    async def get_claim(self, claim_id: str) -> Optional[ClaimWithFiles]:
        async with self._sessions() as session:
            res = await session.execute(
                select(Claim).options(selectinload(Claim.files)).where(Claim.id == claim_id)
            )
            claim = res.scalar_one_or_none()
            return ClaimWithFiles.model_validate(claim) if claim else None

    async def get_claim_by_claim_id(self, code: str) -> Optional[ClaimRecord]:
        async with self._sessions() as session:
            res = await session.execute(select(Claim).where(Claim.claim_id == code))
            claim = res.scalar_one_or_none()
            return ClaimRecord.model_validate(claim) if claim else None

    async def get_claims(self, limit: Optional[int] = DEFAULT_CLAIMS_LIMIT) -> List[ClaimWithFiles]:
        async with self._sessions() as session:
            res = await session.execute(
                select(Claim)
                .options(selectinload(Claim.files))
                .order_by(Claim.created_at.desc())
                .limit(limit)
            )
            return [ClaimWithFiles.model_validate(c) for c in res.scalars().all()]

    async def create_claim(self, data: ClaimCreate) -> ClaimRecord:
        async with self._sessions() as session:
            if await self._code_taken(session, data.claim_id):
                raise DuplicateKeyError("Claim ID already exists")

            now = utcnow()
            claim = Claim(**data.model_dump(), created_at=now, updated_at=now)
            session.add(claim)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                # lost a race on the unique claim code, or some other constraint
                await self._raise_integrity(session, data.claim_id, e)
            logger.info("claim created id=%s code=%s", claim.id, claim.claim_id)
            return ClaimRecord.model_validate(claim)

    async def update_claim(self, claim_id: str, changes: Dict[str, Any]) -> ClaimRecord:
        async with self._sessions() as session:
            claim = await session.get(Claim, claim_id)
            if claim is None:
                raise NotFoundError("Claim not found")

            code = changes.get("claim_id")
            if code == claim.claim_id:
                code = None
            if code and await self._code_taken(session, code):
                raise DuplicateKeyError("Claim ID already exists")

            for key, value in changes.items():
                setattr(claim, key, value)
            claim.updated_at = max(utcnow(), claim.updated_at)

            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                await self._raise_integrity(session, code, e)
            return ClaimRecord.model_validate(claim)

    async def delete_claim(self, claim_id: str) -> bool:
        async with self._sessions() as session:
            await session.execute(
                update(UploadedFile)
                .where(UploadedFile.claim_id == claim_id)
                .values(claim_id=None)
            )
            res = await session.execute(delete(Claim).where(Claim.id == claim_id))
            await session.commit()
            return bool(res.rowcount)

    # -----------------------------
    # Files
    # -----------------------------
    async def get_file(self, file_id: str) -> Optional[FileRecord]:
        async with self._sessions() as session:
            f = await session.get(UploadedFile, file_id)
            return FileRecord.model_validate(f) if f else None

    async def get_files_by_claim_id(self, claim_id: str) -> List[FileRecord]:
        async with self._sessions() as session:
            res = await session.execute(
                select(UploadedFile)
                .where(UploadedFile.claim_id == claim_id)
                .order_by(UploadedFile.uploaded_at)
            )
            return [FileRecord.model_validate(f) for f in res.scalars().all()]

    async def create_file(self, data: FileCreate) -> FileRecord:
        async with self._sessions() as session:
            f = UploadedFile(**data.model_dump())
            session.add(f)
            await session.commit()
            return FileRecord.model_validate(f)

    async def _set_file(self, file_id: str, **values) -> FileRecord:
        async with self._sessions() as session:
            f = await session.get(UploadedFile, file_id)
            if f is None:
                raise NotFoundError("File not found")
            for key, value in values.items():
                setattr(f, key, value)
            await session.commit()
            return FileRecord.model_validate(f)

    async def update_file_status(self, file_id: str, status: FileStatus) -> FileRecord:
        return await self._set_file(file_id, status=status)

    async def link_file(self, file_id: str, claim_id: str) -> FileRecord:
        return await self._set_file(file_id, claim_id=claim_id)

    # -----------------------------
    # Dashboard
    # -----------------------------
    async def get_dashboard_stats(self) -> DashboardStats:
        async with self._sessions() as session:
            total = (await session.execute(select(func.count(Claim.id)))).scalar_one()
            processed = (
                await session.execute(select(func.count(Claim.id)).where(Claim.status == "approved"))
            ).scalar_one()
            pending = (
                await session.execute(select(func.count(Claim.id)).where(Claim.status == "pending"))
            ).scalar_one()
            area = (await session.execute(select(func.sum(Claim.area)))).scalar_one()

        return DashboardStats(
            total_claims=total or 0,
            processed=processed or 0,
            total_area=float(area or 0),
            pending=pending or 0,
        )
