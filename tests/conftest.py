"""
Shared fixtures: a small glacier-lake dataset and in-process fakes for the
lake-report and geocoding services
"""
import asyncio
from typing import Dict, List, Optional

import pytest

from models.model import HazardRecord, OfficialProfile
from services.errors import LakeServiceError


LAKE_ROWS = [
    {
        "id": 1,
        "lakeName": "Imja Tsho",
        "latitude": 27.898,
        "longitude": 86.925,
        "region": "Khumbu",
        "riskLevel": "HIGH",
        "Lake_Area_km2": 1.28,
        "Dam_Slope_deg": 14.2,
        "Lake_Temp_C": 2.1,
        "Elevation_m": 5010,
        "observationDate": "2023-05-01T00:00:00Z",
        "confidence": 87.5,
        "verificationStatus": "PENDING",
        "uploadedBy": {"id": 7, "name": "Pema Sherpa", "email": "pema@example.org"},
    },
    {
        "id": "2",
        "lakeName": "Tsho Rolpa",
        "latitude": 27.861,
        "longitude": 86.478,
        "region": "Rolwaling",
        "riskLevel": "low",
        "observationDate": "2019-09-15T00:00:00Z",
        "confidence": 41.0,
        "verificationStatus": "VERIFIED",
    },
    {
        "id": 3,
        "lakeName": "Thulagi Lake",
        "latitude": 28.486,
        "longitude": 84.483,
        "region": "Manaslu",
        "riskLevel": "MEDIUM",
        "observationDate": "2015-06-20T00:00:00Z",
        "confidence": 63.2,
        "verificationStatus": "REJECTED",
    },
    {
        "id": 4,
        "lakeName": "Lower Barun",
        "latitude": 27.800,
        "longitude": 87.093,
        "region": "Makalu",
        "riskLevel": "HIGH",
        "observationDate": None,
        "confidence": 91.0,
        "verificationStatus": "PENDING",
    },
]


def lake_rows() -> List[dict]:
    return [dict(row) for row in LAKE_ROWS]


@pytest.fixture
def rows():
    """Wire-format rows as the lake-report service returns them"""
    return lake_rows()


@pytest.fixture
def records(rows):
    return [HazardRecord.model_validate(row) for row in rows]


@pytest.fixture
def official():
    return OfficialProfile(id=7, name="Pema Sherpa", email="pema@example.org", department="DHM")


class FakeLakeService:
    """
    In-memory stand-in for LakeReportService.

    Detail fetches for ids listed in `gates`, and dataset fetches once
    `dataset_gate` is assigned, wait until the matching event is set, which lets
    tests control completion order.
    """

    def __init__(self, records: Optional[List[HazardRecord]] = None):
        self.records = list(records or [])
        self.details: Dict[int, HazardRecord] = {r.id: r for r in self.records}
        self.gates: Dict[int, asyncio.Event] = {}
        self.fail_dataset: Optional[Exception] = None
        self.dataset_gate: Optional[asyncio.Event] = None
        self.fail_detail: Dict[int, Exception] = {}
        self.fail_review: Optional[Exception] = None
        self.profile: Optional[OfficialProfile] = None
        self.detail_calls: List[int] = []
        self.reviews: List[tuple] = []
        self.uploads: List[dict] = []
        self.closed = False

    async def fetch_dataset(self) -> List[HazardRecord]:
        if self.dataset_gate is not None:
            await self.dataset_gate.wait()
        if self.fail_dataset is not None:
            raise self.fail_dataset
        return list(self.records)

    async def fetch_record_detail(self, record_id: int) -> HazardRecord:
        self.detail_calls.append(record_id)
        gate = self.gates.get(record_id)
        if gate is not None:
            await gate.wait()
        if record_id in self.fail_detail:
            raise self.fail_detail[record_id]
        if record_id not in self.details:
            raise LakeServiceError(f"Lake {record_id} not found", 404)
        return self.details[record_id]

    async def fetch_pending_high_risk(self) -> List[HazardRecord]:
        if self.fail_dataset is not None:
            raise self.fail_dataset
        return [r for r in self.records if r.risk_level == "HIGH" and r.verification_status == "PENDING"]

    async def verify_report(self, record_id: int):
        if self.fail_review is not None:
            raise self.fail_review
        self.reviews.append(("verify", record_id))
        return {"id": record_id, "verificationStatus": "VERIFIED"}

    async def reject_report(self, record_id: int):
        if self.fail_review is not None:
            raise self.fail_review
        self.reviews.append(("reject", record_id))
        return {"id": record_id, "verificationStatus": "REJECTED"}

    async def upload_report(self, payload):
        self.uploads.append(payload.model_dump(by_alias=True))
        return {"id": 99, "riskLevel": "MEDIUM"}

    async def sign_in(self, email: str, password: str) -> OfficialProfile:
        if self.profile is None or password != "secret":
            raise LakeServiceError("Invalid credentials", 401)
        return self.profile

    async def sign_out(self):
        return None

    async def close(self):
        self.closed = True


class FakeGeocoder:
    """Reverse lookups answered from a dict keyed by (lat, lon)"""

    def __init__(self, labels: Optional[Dict[tuple, str]] = None):
        self.labels = labels or {}
        self.gate: Optional[asyncio.Event] = None
        self.calls: List[tuple] = []
        self.closed = False

    async def reverse_geocode(self, latitude: float, longitude: float) -> Optional[str]:
        self.calls.append((latitude, longitude))
        if self.gate is not None:
            await self.gate.wait()
        return self.labels.get((latitude, longitude))

    async def search(self, text: str):
        return []

    async def close(self):
        self.closed = True


class StepClock:
    """Frame clock that yields to the loop without sleeping"""

    def __init__(self):
        self.frames = 0

    async def next_frame(self):
        self.frames += 1
        await asyncio.sleep(0)


@pytest.fixture
def fake_lake_service(records, official):
    service = FakeLakeService(records)
    service.profile = official
    return service


@pytest.fixture
def fake_geocoder():
    return FakeGeocoder({(27.898, 86.925): "Khumjung, Solukhumbu, Nepal"})


@pytest.fixture
def step_clock():
    return StepClock()
