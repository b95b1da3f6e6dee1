# fra_claims/services/intake.py
"""
Document intake.

`IntakeEngine` is the seam a real recognition engine plugs into. The shipped
`MockIntakeEngine` performs no recognition: it waits a little, then returns
one of a few canned FRA claim-form records with a synthetic confidence score,
degrading fields when the score is low so the review/correction flow has
something to fix.
"""

import asyncio
import logging
import random
import re
import time
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from fra_claims.errors import ProcessingError
from fra_claims.schemas import ExtractedRecord, ExtractionCorrections

logger = logging.getLogger(__name__)

MIN_CONFIDENCE = 15
MAX_CONFIDENCE = 98
LOW_CONFIDENCE = 50
MEDIUM_CONFIDENCE = 75

UNCLEAR = "[UNCLEAR]"
ILLEGIBLE = "[ILLEGIBLE]"
UNCLEAR_NOTE = "[Some text unclear due to image quality]"

SAMPLE_RECORDS: List[Dict[str, Optional[str]]] = [
    {
        "claimant_name": "Ramesh Kumar",
        "village": "Kachargaon",
        "claim_id": "FRA-2024-001",
        "area": "2.45",
        "survey_number": "123/2A",
        "district": "Gadchiroli",
        "state": "Maharashtra",
        "raw_text": (
            "FOREST RIGHTS ACT CLAIM FORM\n"
            "Claimant: Ramesh Kumar\n"
            "Village: Kachargaon\n"
            "District: Gadchiroli\n"
            "State: Maharashtra\n"
            "Claim ID: FRA-2024-001\n"
            "Area: 2.45 hectares\n"
            "Survey No: 123/2A\n"
            "Date: 15-03-2024"
        ),
    },
    {
        "claimant_name": "Sita Devi",
        "village": "Bamni",
        "claim_id": "FRA-2024-002",
        "area": "1.87",
        "survey_number": "87/1B",
        "district": "Gadchiroli",
        "state": "Maharashtra",
        "raw_text": (
            "फॉरेस्ट राइट्स एक्ट क्लेम फॉर्म\n"
            "दावेदार: सीता देवी\n"
            "गाव: बामनी\n"
            "जिल्हा: गडचिरोली\n"
            "राज्य: महाराष्ट्र\n"
            "क्लेम आयडी: FRA-2024-002\n"
            "क्षेत्र: 1.87 हेक्टर\n"
            "सर्वे नं: 87/1B"
        ),
    },
    {
        "claimant_name": "Mohan Singh",
        "village": "Mendha",
        "claim_id": "FRA-2024-003",
        "area": "3.12",
        "survey_number": None,
        "district": "Gadchiroli",
        "state": "Maharashtra",
        "raw_text": (
            "FOREST RIGHTS CLAIM\n"
            "Name: Mohan Singh\n"
            "Village: Mendha\n"
            "Area: 3.12 hectares\n"
            "[Handwritten text - partially illegible]\n"
            "Survey: [unclear]\n"
            "Date: [smudged]"
        ),
    },
]


class IntakeEngine(ABC):
    @abstractmethod
    async def process_file(self, path: Path, mime_type: str) -> ExtractedRecord:
        """Extract a claim record from the stored file at `path`."""

    async def reprocess_with_corrections(
        self, path: Path, corrections: ExtractionCorrections
    ) -> ExtractedRecord:
        """Re-run extraction and overlay reviewer corrections (confidence 100)."""
        record = await self.process_file(path, "application/pdf")
        data = record.model_dump()
        data.update(corrections.model_dump(exclude_none=True))
        data["confidence"] = 100
        return ExtractedRecord.model_validate(data)


def estimate_confidence(mime_type: str, size_bytes: int, rng: random.Random) -> int:
    base = 85
    if mime_type == "application/pdf":
        base = 90
    elif mime_type.startswith("image/"):
        base = 75

    size_kb = size_bytes / 1024
    if size_kb > 1000:
        base += 5
    elif size_kb < 100:
        base -= 10

    noisy = base + (rng.random() * 20 - 10)
    return round(max(MIN_CONFIDENCE, min(MAX_CONFIDENCE, noisy)))


def degrade(record: Dict[str, Optional[str]], confidence: int, rng: random.Random) -> None:
    """Make a canned record look like a poor scan, in place."""
    if confidence < LOW_CONFIDENCE:
        if record.get("district"):
            record["district"] = UNCLEAR
        record["survey_number"] = ILLEGIBLE
        record["raw_text"] = re.sub(
            r"\d",
            lambda m: "?" if rng.random() > 0.7 else m.group(0),
            record["raw_text"] or "",
        )
    elif confidence < MEDIUM_CONFIDENCE:
        record["raw_text"] = (record["raw_text"] or "") + "\n" + UNCLEAR_NOTE


def fresh_claim_code(now: Optional[float] = None) -> str:
    now = time.time() if now is None else now
    millis = str(int(now * 1000))
    return f"FRA-{datetime.fromtimestamp(now).year}-{millis[-4:]}"


class MockIntakeEngine(IntakeEngine):
    def __init__(
        self,
        min_delay: float = 1.5,
        max_delay: float = 3.5,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.min_delay = min_delay
        self.max_delay = max(min_delay, max_delay)
        self.rng = rng or random.Random()

    async def process_file(self, path: Path, mime_type: str) -> ExtractedRecord:
        delay = self.rng.uniform(self.min_delay, self.max_delay)
        if delay > 0:
            await asyncio.sleep(delay)

        path = Path(path)
        if not path.is_file():
            raise ProcessingError("File not found for OCR processing")

        confidence = estimate_confidence(mime_type, path.stat().st_size, self.rng)
        record = dict(self.rng.choice(SAMPLE_RECORDS))
        record["claim_id"] = fresh_claim_code()
        degrade(record, confidence, self.rng)

        logger.info("intake processed file %s confidence=%s%%", path.name, confidence)
        return ExtractedRecord(**record, confidence=confidence)


# ---- Entity pass over recognized text ---------------------------------------

P_VILLAGE = re.compile(r"(?im)\bvillage\s*:\s*([A-Za-z ]+)")
P_NAME = re.compile(r"(?im)\b(?:claimant|name)\s*:\s*([A-Za-z ]+)")
P_AREA = re.compile(r"(?im)\barea\s*:\s*([\d.]+)")
P_ID = re.compile(r"(?m)\b(?:Claim ID|ID)\s*:\s*([A-Z0-9-]+)")


def _dedupe(seq):
    """Dedupe while preserving order and dropping falsy values."""
    seen = set()
    out = []
    for x in seq:
        if x and x not in seen:
            seen.add(x)
            out.append(x)
    return out


def _matches(pattern: re.Pattern, text: str) -> List[str]:
    return _dedupe(" ".join(m.group(1).split()) for m in pattern.finditer(text))


def extract_entities(text: str) -> Dict[str, List[str]]:
    """Pull labelled villages, names, areas and claim ids out of raw text."""
    text = text or ""
    return {
        "villages": _matches(P_VILLAGE, text),
        "names": _matches(P_NAME, text),
        "areas": _matches(P_AREA, text),
        "ids": _matches(P_ID, text),
    }
