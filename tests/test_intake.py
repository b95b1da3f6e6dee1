import random
import re

import pytest

from fra_claims.errors import ProcessingError
from fra_claims.schemas import ExtractionCorrections
from fra_claims.services.intake import (
    ILLEGIBLE,
    SAMPLE_RECORDS,
    UNCLEAR,
    UNCLEAR_NOTE,
    MockIntakeEngine,
    degrade,
    estimate_confidence,
    extract_entities,
    fresh_claim_code,
)


class FixedRandom(random.Random):
    """random() always returns the same value."""

    def __init__(self, value):
        super().__init__(0)
        self.value = value

    def random(self):
        return self.value


MB = 1024 * 1024


@pytest.mark.parametrize(
    "mime, size, expected",
    [
        ("application/pdf", 2 * MB, 95),
        ("application/pdf", 500 * 1024, 90),
        ("image/png", 50 * 1024, 65),
        ("image/jpeg", 2 * MB, 80),
        ("application/octet-stream", 500 * 1024, 85),
    ],
)
def test_confidence_heuristic_without_noise(mime, size, expected):
    assert estimate_confidence(mime, size, FixedRandom(0.5)) == expected


def test_confidence_is_clamped():
    assert estimate_confidence("application/pdf", 2 * MB, FixedRandom(0.9999)) == 98
    rng = random.Random(7)
    for _ in range(200):
        assert 15 <= estimate_confidence("image/png", 10, rng) <= 98


def test_low_confidence_degrades_fields():
    record = dict(SAMPLE_RECORDS[0])

    degrade(record, 30, FixedRandom(0.9))

    assert record["district"] == UNCLEAR
    assert record["survey_number"] == ILLEGIBLE
    assert not re.search(r"\d", record["raw_text"])
    assert "?" in record["raw_text"]


def test_low_confidence_leaves_missing_district_alone():
    record = dict(SAMPLE_RECORDS[2], district=None)

    degrade(record, 20, FixedRandom(0.1))

    assert record["district"] is None
    assert record["survey_number"] == ILLEGIBLE
    # low draws keep every digit
    assert record["raw_text"] == SAMPLE_RECORDS[2]["raw_text"]


def test_medium_confidence_appends_note():
    record = dict(SAMPLE_RECORDS[0])

    degrade(record, 60, FixedRandom(0.5))

    assert record["raw_text"].endswith("\n" + UNCLEAR_NOTE)
    assert record["survey_number"] == "123/2A"
    assert record["district"] == "Gadchiroli"


def test_high_confidence_is_untouched():
    record = dict(SAMPLE_RECORDS[1])
    degrade(record, 90, FixedRandom(0.5))
    assert record == SAMPLE_RECORDS[1]


def test_fresh_claim_code_shape():
    assert re.fullmatch(r"FRA-\d{4}-\d{4}", fresh_claim_code())
    assert fresh_claim_code(1_700_000_001.25).endswith("-1250")


async def test_process_file_returns_canned_record(tmp_path):
    path = tmp_path / "form.pdf"
    path.write_bytes(b"%PDF-1.4\n" + b"0" * (2 * MB))
    engine = MockIntakeEngine(min_delay=0, max_delay=0, rng=random.Random(42))

    for _ in range(20):
        record = await engine.process_file(path, "application/pdf")
        assert 15 <= record.confidence <= 98
        assert re.fullmatch(r"FRA-\d{4}-\d{4}", record.claim_id)
        assert record.claimant_name in {r["claimant_name"] for r in SAMPLE_RECORDS}
        if record.confidence < 50:
            assert record.survey_number == ILLEGIBLE


async def test_process_file_missing_file_raises(tmp_path):
    engine = MockIntakeEngine(min_delay=0, max_delay=0)

    with pytest.raises(ProcessingError):
        await engine.process_file(tmp_path / "gone.pdf", "application/pdf")


async def test_reprocess_with_corrections_forces_full_confidence(tmp_path):
    path = tmp_path / "scan.png"
    path.write_bytes(b"\x89PNG" + b"0" * 1024)
    engine = MockIntakeEngine(min_delay=0, max_delay=0, rng=random.Random(3))

    record = await engine.reprocess_with_corrections(
        path, ExtractionCorrections(claimant_name="Mohan Singh", survey_number="44/7")
    )

    assert record.confidence == 100
    assert record.claimant_name == "Mohan Singh"
    assert record.survey_number == "44/7"


def test_extract_entities_from_sample_text():
    entities = extract_entities(SAMPLE_RECORDS[0]["raw_text"])

    assert entities["villages"] == ["Kachargaon"]
    assert entities["names"] == ["Ramesh Kumar"]
    assert entities["areas"] == ["2.45"]
    assert entities["ids"] == ["FRA-2024-001"]


def test_extract_entities_empty_text():
    assert extract_entities("") == {"villages": [], "names": [], "areas": [], "ids": []}
