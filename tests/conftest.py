import random

import pytest
from fastapi.testclient import TestClient

from fra_claims.config import Settings
from fra_claims.db import make_engine
from fra_claims.main import create_app
from fra_claims.schemas import ClaimCreate
from fra_claims.services.intake import MockIntakeEngine
from fra_claims.storage.database import DatabaseStore
from fra_claims.storage.memory import MemoryStore


def sqlite_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{(tmp_path / 'claims.db').as_posix()}"


def make_claim(code="FRA-2024-001", **overrides) -> ClaimCreate:
    data = {
        "claim_id": code,
        "claimant_name": "Ramesh Kumar",
        "village": "Kachargaon",
        "district": "Gadchiroli",
        "state": "Maharashtra",
        "area": "2.45",
        "survey_number": "123/2A",
    }
    data.update(overrides)
    return ClaimCreate(**data)


@pytest.fixture(params=["memory", "database"])
async def store(request, tmp_path):
    if request.param == "memory":
        s = MemoryStore()
    else:
        s = DatabaseStore(make_engine(sqlite_url(tmp_path)))
    await s.init()
    yield s
    await s.close()


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=None,
        upload_dir=tmp_path / "uploads",
        intake_min_delay=0.0,
        intake_max_delay=0.0,
    )


@pytest.fixture
def intake():
    return MockIntakeEngine(min_delay=0.0, max_delay=0.0, rng=random.Random(1234))


@pytest.fixture(params=["memory", "database"])
def client(request, settings, intake, tmp_path):
    if request.param == "database":
        settings.database_url = sqlite_url(tmp_path)
    app = create_app(settings=settings, intake=intake)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def claim_payload():
    return {
        "claimId": "FRA-2024-001",
        "claimantName": "Ramesh Kumar",
        "village": "Kachargaon",
        "district": "Gadchiroli",
        "state": "Maharashtra",
        "area": "2.45",
        "surveyNumber": "123/2A",
    }


@pytest.fixture
def new_claim():
    return make_claim
