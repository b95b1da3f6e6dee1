"""Store contract, run against both backends."""

import asyncio
from decimal import Decimal

import pytest
from sqlalchemy import event

from fra_claims.db import make_engine
from fra_claims.errors import DuplicateKeyError, NotFoundError, ValidationError
from fra_claims.schemas import FileCreate, UserCreate
from fra_claims.storage.database import DatabaseStore


def make_file(**overrides) -> FileCreate:
    data = {
        "filename": "abc123.pdf",
        "original_name": "claim-form.pdf",
        "mimetype": "application/pdf",
        "size": 2048,
    }
    data.update(overrides)
    return FileCreate(**data)


async def test_create_and_get_claim(store, new_claim):
    created = await store.create_claim(new_claim())

    assert created.id
    assert created.status == "pending"
    assert created.area == Decimal("2.45")
    assert created.created_at == created.updated_at

    fetched = await store.get_claim(created.id)
    assert fetched.claim_id == "FRA-2024-001"
    assert fetched.claimant_name == "Ramesh Kumar"
    assert fetched.files == []

    by_code = await store.get_claim_by_claim_id("FRA-2024-001")
    assert by_code.id == created.id


async def test_unknown_claim_lookups(store):
    assert await store.get_claim("missing") is None
    assert await store.get_claim_by_claim_id("FRA-0000-000") is None


async def test_duplicate_claim_code_writes_nothing(store, new_claim):
    await store.create_claim(new_claim())

    with pytest.raises(DuplicateKeyError):
        await store.create_claim(new_claim(claimant_name="Someone Else"))

    claims = await store.get_claims()
    assert len(claims) == 1
    assert claims[0].claimant_name == "Ramesh Kumar"


async def test_get_claims_newest_first_and_limited(store, new_claim):
    for n in range(1, 4):
        await store.create_claim(new_claim(f"FRA-2024-00{n}"))

    claims = await store.get_claims()
    assert [c.claim_id for c in claims] == ["FRA-2024-003", "FRA-2024-002", "FRA-2024-001"]

    limited = await store.get_claims(limit=2)
    assert [c.claim_id for c in limited] == ["FRA-2024-003", "FRA-2024-002"]


async def test_update_claim_merges_and_refreshes_updated_at(store, new_claim):
    created = await store.create_claim(new_claim())

    updated = await store.update_claim(created.id, {"status": "approved"})

    assert updated.status == "approved"
    assert updated.claimant_name == "Ramesh Kumar"
    assert updated.created_at == created.created_at
    assert updated.updated_at >= created.updated_at

    again = await store.update_claim(created.id, {"village": "Bamni"})
    assert again.status == "approved"
    assert again.village == "Bamni"
    assert again.created_at == created.created_at
    assert again.updated_at >= updated.updated_at


async def test_update_unknown_claim_raises(store):
    with pytest.raises(NotFoundError):
        await store.update_claim("missing", {"status": "approved"})


async def test_update_claim_code_to_taken_code(store, new_claim):
    await store.create_claim(new_claim("FRA-2024-001"))
    second = await store.create_claim(new_claim("FRA-2024-002"))

    with pytest.raises(DuplicateKeyError):
        await store.update_claim(second.id, {"claim_id": "FRA-2024-001"})

    assert (await store.get_claim(second.id)).claim_id == "FRA-2024-002"


async def test_boundary_geometry_round_trips_verbatim(store, new_claim):
    created = await store.create_claim(new_claim())
    polygon = {
        "type": "Polygon",
        "coordinates": [[[80.1, 20.1], [80.2, 20.1], [80.2, 20.2], [80.1, 20.1]]],
    }

    await store.update_claim(created.id, {"boundary_geometry": polygon})

    assert (await store.get_claim(created.id)).boundary_geometry == polygon


async def test_delete_claim(store, new_claim):
    created = await store.create_claim(new_claim())
    f = await store.create_file(make_file())
    await store.link_file(f.id, created.id)

    assert await store.delete_claim(created.id) is True
    assert await store.get_claim(created.id) is None

    # files are kept, only the link goes
    kept = await store.get_file(f.id)
    assert kept is not None
    assert kept.claim_id is None


async def test_delete_unknown_claim_leaves_store_unchanged(store, new_claim):
    await store.create_claim(new_claim())
    before = await store.get_dashboard_stats()

    assert await store.delete_claim("missing") is False

    assert await store.get_dashboard_stats() == before
    assert len(await store.get_claims()) == 1


async def test_file_status_and_linking(store, new_claim):
    f = await store.create_file(make_file())
    assert f.status == "uploaded"
    assert f.claim_id is None

    f = await store.update_file_status(f.id, "processing")
    assert f.status == "processing"
    f = await store.update_file_status(f.id, "processed")
    assert (await store.get_file(f.id)).status == "processed"

    claim = await store.create_claim(new_claim())
    await store.link_file(f.id, claim.id)

    files = await store.get_files_by_claim_id(claim.id)
    assert [x.id for x in files] == [f.id]
    with_files = await store.get_claim(claim.id)
    assert [x.original_name for x in with_files.files] == ["claim-form.pdf"]


async def test_unknown_file_operations_raise(store):
    assert await store.get_file("missing") is None
    with pytest.raises(NotFoundError):
        await store.update_file_status("missing", "failed")
    with pytest.raises(NotFoundError):
        await store.link_file("missing", "whatever")


async def test_dashboard_stats(store, new_claim):
    empty = await store.get_dashboard_stats()
    assert (empty.total_claims, empty.processed, empty.total_area, empty.pending) == (0, 0, 0.0, 0)

    a = await store.create_claim(new_claim("FRA-2024-001", area="2.45"))
    await store.create_claim(new_claim("FRA-2024-002", area="1.87"))
    c = await store.create_claim(new_claim("FRA-2024-003", area="3.12"))
    await store.update_claim(a.id, {"status": "approved"})
    await store.update_claim(c.id, {"status": "rejected"})

    stats = await store.get_dashboard_stats()
    assert stats.total_claims == 3
    assert stats.processed == 1
    assert stats.pending == 1
    assert stats.total_area == pytest.approx(7.44)
    assert stats.processed <= stats.total_claims
    assert stats.pending <= stats.total_claims


async def test_users(store):
    user = await store.create_user(UserCreate(username="officer1", password="hashed", email="officer1@forestdept.in"))

    assert (await store.get_user(user.id)).username == "officer1"
    assert (await store.get_user_by_username("officer1")).id == user.id
    assert await store.get_user("missing") is None
    assert await store.get_user_by_username("nobody") is None

    with pytest.raises(DuplicateKeyError):
        await store.create_user(UserCreate(username="officer1", password="other"))


async def test_concurrent_creates_with_same_code(store, new_claim):
    results = await asyncio.gather(
        store.create_claim(new_claim()),
        store.create_claim(new_claim(claimant_name="Sita Devi")),
        return_exceptions=True,
    )

    errors = [r for r in results if isinstance(r, Exception)]
    assert len(errors) == 1
    assert isinstance(errors[0], DuplicateKeyError)
    assert len(await store.get_claims()) == 1


async def test_get_claims_without_limit(store, new_claim):
    for n in range(1, 56):
        await store.create_claim(new_claim(f"FRA-2024-{n:03d}"))

    assert len(await store.get_claims()) == 50
    everything = await store.get_claims(limit=None)
    assert len(everything) == 55
    assert everything[-1].claim_id == "FRA-2024-001"


async def test_constraint_violation_is_not_a_duplicate(tmp_path, new_claim):
    engine = make_engine(f"sqlite+aiosqlite:///{(tmp_path / 'fk.db').as_posix()}")

    @event.listens_for(engine.sync_engine, "connect")
    def enforce_foreign_keys(dbapi_conn, _record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    store = DatabaseStore(engine)
    await store.init()
    try:
        with pytest.raises(ValidationError):
            await store.create_claim(new_claim(user_id="no-such-user"))
        assert await store.get_claims() == []

        claim = await store.create_claim(new_claim())
        with pytest.raises(ValidationError):
            await store.update_claim(claim.id, {"user_id": "no-such-user"})
        assert (await store.get_claim(claim.id)).user_id is None
    finally:
        await store.close()
