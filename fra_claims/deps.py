# fra_claims/deps.py
"""
Process-wide collaborators.

The store and intake engine are built once in `create_app` and parked on
`app.state`; routes reach them through these dependencies only.
"""

from fastapi import Request

from fra_claims.config import Settings
from fra_claims.db import make_engine
from fra_claims.services.intake import IntakeEngine, MockIntakeEngine
from fra_claims.storage.base import ClaimStore
from fra_claims.storage.database import DatabaseStore
from fra_claims.storage.memory import MemoryStore


def build_store(settings: Settings) -> ClaimStore:
    if settings.database_url:
        return DatabaseStore(make_engine(settings.database_url, echo=settings.sql_echo))
    return MemoryStore()


def build_intake(settings: Settings) -> IntakeEngine:
    return MockIntakeEngine(
        min_delay=settings.intake_min_delay,
        max_delay=settings.intake_max_delay,
    )


def get_store(request: Request) -> ClaimStore:
    return request.app.state.store


def get_intake(request: Request) -> IntakeEngine:
    return request.app.state.intake


def get_settings(request: Request) -> Settings:
    return request.app.state.settings
