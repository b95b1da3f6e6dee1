# fra_claims/config.py
"""
Environment-driven settings.

`.env` is loaded once here; everything else receives a `Settings` object
built by `load_settings()` (tests build their own).
"""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv

load_dotenv()

DEFAULT_CORS_ORIGINS = (
    "http://localhost:3000",
    "http://127.0.0.1:3000",
    "http://localhost:5173",
    "http://127.0.0.1:5173",
)

ALLOWED_MIME_TYPES = ("application/pdf", "image/jpeg", "image/jpg", "image/png")


@dataclass
class Settings:
    # None selects the in-memory store
    database_url: Optional[str] = None
    upload_dir: Path = Path("uploads")
    max_upload_bytes: int = 10 * 1024 * 1024
    allowed_mime_types: Tuple[str, ...] = ALLOWED_MIME_TYPES
    intake_min_delay: float = 1.5
    intake_max_delay: float = 3.5
    cors_origins: Tuple[str, ...] = field(default=DEFAULT_CORS_ORIGINS)
    log_level: str = "INFO"
    sql_echo: bool = False


def _csv(value: Optional[str], default: Tuple[str, ...]) -> Tuple[str, ...]:
    if not value:
        return default
    return tuple(v.strip() for v in value.split(",") if v.strip())


def load_settings() -> Settings:
    """Build settings from the process environment."""
    return Settings(
        database_url=os.getenv("DATABASE_URL") or None,
        upload_dir=Path(os.getenv("UPLOAD_DIR", "uploads")),
        max_upload_bytes=int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024))),
        intake_min_delay=float(os.getenv("INTAKE_MIN_DELAY", "1.5")),
        intake_max_delay=float(os.getenv("INTAKE_MAX_DELAY", "3.5")),
        cors_origins=_csv(os.getenv("CORS_ORIGINS"), DEFAULT_CORS_ORIGINS),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        sql_echo=os.getenv("SQL_ECHO", "0").lower() in ("1", "true", "yes"),
    )
