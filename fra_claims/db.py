# fra_claims/db.py
import logging
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

logger = logging.getLogger(__name__)


def _sqlite_file(database_url: str):
    """Return the sqlite database path for a sqlite URL, else None."""
    if not database_url.startswith("sqlite"):
        return None
    part = database_url.split(":///", 1)[-1] if ":///" in database_url else ""
    return Path(part) if part and part != ":memory:" else None


def make_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """
    Async engine for `database_url` (sqlite+aiosqlite by default; any async
    driver URL works).
    """
    db_file = _sqlite_file(database_url)
    if db_file is not None:
        db_file.parent.mkdir(parents=True, exist_ok=True)
        logger.info("using sqlite database file %s", db_file.resolve())

    return create_async_engine(database_url, echo=echo, future=True)


def make_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    return async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)
