"""
Selection Resolver
Click → feature → full record state machine, with a stub fallback and version-checked detail upgrades.

States:
    IDLE             nothing selected
    AWAITING_DETAIL  a stub is shown while the full record is fetched
    SELECTED         a full record is shown

Every click takes a new token. An async completion is applied only if its
token and record id are still the current interest, so a slow response for
an earlier click can never overwrite a newer selection.
"""

import asyncio
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, List, Optional, Set
import structlog

from config import settings
from models.base import try_normalize_id
from models.model import HazardRecord, Selection, SelectionKind
from services.map_surface import MapSurface, DOTS_LAYER_ID
from services.record_store import RecordStore
from services.viewport import ViewportController

logger = structlog.get_logger(__name__)

DetailFetcher = Callable[[int], Awaitable[HazardRecord]]
SelectionListener = Callable[[Selection], None]


def _confidence_hint(value: Any) -> float:
    try:
        return float(value or 0.0)
    except (TypeError, ValueError):
        return 0.0


def _risk_hint(properties: Dict[str, Any]) -> Optional[str]:
    for key in ("riskLevel", "classification"):
        value = properties.get(key)
        if isinstance(value, str) and value.strip():
            return value
    return None


class SelectionState(str, Enum):
    IDLE = "idle"
    AWAITING_DETAIL = "awaiting_detail"
    SELECTED = "selected"


class SelectionResolver:
    """Owns the single active selection"""

    def __init__(
        self,
        store: RecordStore,
        fetch_detail: DetailFetcher,
        surface: Optional[MapSurface] = None,
        viewport: Optional[ViewportController] = None,
        refresh_on_select: Optional[bool] = None,
        layer_id: str = DOTS_LAYER_ID
    ):
        self.store = store
        self.fetch_detail = fetch_detail
        self.surface = surface
        self.viewport = viewport
        self.refresh_on_select = settings.refresh_on_select if refresh_on_select is None else refresh_on_select
        self.layer_id = layer_id

        self.state = SelectionState.IDLE
        self.selection = Selection()
        self._token = 0
        self._interest: Optional[int] = None
        self._tasks: Set[asyncio.Task] = set()
        self._listeners: List[SelectionListener] = []

    @property
    def current_id(self) -> Optional[int]:
        """Id of interest; None when idle"""
        return self._interest

    def subscribe(self, listener: SelectionListener):
        self._listeners.append(listener)

    # --- transitions ---

    def click(self, longitude: float, latitude: float, tolerance: Optional[float] = None) -> Optional[Selection]:
        """Hit-test the dot layer; a miss leaves the state unchanged"""
        if self.surface is None:
            raise RuntimeError("Click hit-testing needs a map surface")
        hits = self.surface.query_rendered_features(longitude, latitude, self.layer_id, tolerance)
        if not hits:
            logger.debug("Click missed every feature", longitude=longitude, latitude=latitude)
            return None
        return self.select_feature(hits[0].get("properties") or {})

    def select_feature(self, properties: Dict[str, Any]) -> Optional[Selection]:
        """Resolve the properties of the topmost clicked feature into a selection"""
        record_id = try_normalize_id(properties.get("id"))
        if record_id is None:
            logger.warning("Clicked feature has no usable id", properties=properties)
            return None

        self._token += 1
        token = self._token
        self._interest = record_id

        record = self.store.get(record_id)
        if record is not None:
            self.state = SelectionState.SELECTED
            self._publish(Selection(kind=SelectionKind.RESOLVED, record=record, version=token))
            if self.viewport is not None:
                self.viewport.focus(record)
            if self.refresh_on_select:
                self._spawn_upgrade(record_id, token)
            logger.info("Lake selected from local data", record_id=record_id)
        else:
            stub = HazardRecord.stub(
                record_id,
                risk_level=_risk_hint(properties),
                confidence=_confidence_hint(properties.get("confidence")),
            )
            self.state = SelectionState.AWAITING_DETAIL
            self._publish(Selection(kind=SelectionKind.STUB, record=stub, version=token))
            self._spawn_upgrade(record_id, token)
            logger.info("Lake not loaded locally, fetching detail", record_id=record_id)

        return self.selection

    def close(self) -> Selection:
        """Explicit close from any state; pending upgrades become stale"""
        self._token += 1
        self._interest = None
        self.state = SelectionState.IDLE
        self._publish(Selection(version=self._token))
        return self.selection

    # --- async upgrade ---

    def _spawn_upgrade(self, record_id: int, token: int):
        task = asyncio.create_task(self._upgrade(record_id, token), name=f"lake-detail-{record_id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _is_current(self, record_id: int, token: int) -> bool:
        return token == self._token and record_id == self._interest

    async def _upgrade(self, record_id: int, token: int):
        try:
            record = await self.fetch_detail(record_id)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning("Lake detail fetch failed, keeping current selection", record_id=record_id, error=str(e))
            return

        if not self._is_current(record_id, token):
            logger.debug("Discarding stale lake detail", record_id=record_id, token=token, current_token=self._token)
            return
        if record.id != record_id:
            logger.warning("Lake detail id mismatch", requested=record_id, received=record.id)
            return

        was_stub = self.selection.kind == SelectionKind.STUB
        self.state = SelectionState.SELECTED
        self._publish(Selection(kind=SelectionKind.RESOLVED, record=record, version=token))
        if was_stub and self.viewport is not None:
            self.viewport.focus(record)
        logger.info("Lake detail applied", record_id=record_id, upgraded_stub=was_stub)

    async def drain(self):
        """Wait for outstanding detail fetches"""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def _publish(self, selection: Selection):
        self.selection = selection
        for listener in list(self._listeners):
            try:
                listener(selection)
            except Exception as e:
                logger.error("Selection listener failed", error=str(e), exc_info=True)
