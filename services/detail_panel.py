"""
Detail Panel Presenter
Turns the active selection into the lake detail view model, with a best-effort place label
"""

import asyncio
from typing import Any, Dict, Optional, Set
import structlog

from models.base import VerificationStatus
from models.model import HazardRecord, Selection, SelectionKind
from services.geocoding_service import GeocodingService
from services.map_surface import color_for

logger = structlog.get_logger(__name__)

BADGE_TONES = {
    VerificationStatus.VERIFIED.value: "green",
    VerificationStatus.REJECTED.value: "red",
}


def _timestamp(value) -> Optional[str]:
    return value.isoformat() if value else None


def _profile(profile) -> Optional[Dict[str, Any]]:
    if profile is None or (not profile.id and not profile.name):
        return None
    return profile.model_dump()


def build_panel(record: HazardRecord, is_stub: bool, location_label: Optional[str] = None) -> Dict[str, Any]:
    return {
        "id": record.id,
        "lake_name": record.lake_name,
        "region": record.region,
        "loading": is_stub,
        "risk": {
            "level": record.risk_level.lower(),
            "score": round(record.confidence / 100, 4),
            "color": color_for(record.risk_level),
        },
        "verification": {
            "status": record.verification_status,
            "tone": BADGE_TONES.get(record.verification_status, "yellow"),
            "verified_at": _timestamp(record.verified_at),
            "declined_at": _timestamp(record.declined_at),
        },
        "position": {"latitude": record.latitude, "longitude": record.longitude},
        "location_label": location_label,
        "metrics": {
            "lake_area": {"value": record.lake_area_km2, "unit": "km²"},
            "dam_slope": {"value": record.dam_slope_deg, "unit": "°"},
            "lake_temperature": {"value": record.lake_temp_c, "unit": "°C"},
            "elevation": {"value": record.elevation_m, "unit": "m"},
        },
        "observed_at": _timestamp(record.observation_date),
        "assessed_at": _timestamp(record.assessed_at),
        "created_at": _timestamp(record.created_at),
        "uploaded_by": _profile(record.uploaded_by),
        "verified_by": _profile(record.verified_by),
    }


class DetailPanelPresenter:
    """
    Follows the selection and keeps the panel model current.

    The place label is looked up in the background; a label that arrives
    after the selection changed is dropped.
    """

    def __init__(self, geocoder: Optional[GeocodingService] = None):
        self.geocoder = geocoder
        self.selection = Selection()
        self.location_label: Optional[str] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def panel(self) -> Optional[Dict[str, Any]]:
        if self.selection.record is None:
            return None
        return build_panel(
            self.selection.record,
            is_stub=self.selection.kind == SelectionKind.STUB,
            location_label=self.location_label,
        )

    def on_selection(self, selection: Selection):
        previous = self.selection.record
        self.selection = selection
        record = selection.record

        same_place = (
            previous is not None and record is not None
            and (previous.latitude, previous.longitude) == (record.latitude, record.longitude)
        )
        if not same_place:
            self.location_label = None

        if record is None or not record.has_position or self.geocoder is None:
            return
        if same_place and self.location_label is not None:
            return

        task = asyncio.create_task(self._resolve_label(record, selection.version))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _resolve_label(self, record: HazardRecord, version: int):
        label = await self.geocoder.reverse_geocode(record.latitude, record.longitude)
        current = self.selection.record
        if self.selection.version != version or current is None or current.id != record.id:
            logger.debug("Dropping place label for superseded selection", record_id=record.id)
            return
        self.location_label = label

    async def drain(self):
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
