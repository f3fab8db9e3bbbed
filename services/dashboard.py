"""
Dashboard Controller
Wires the record store, filter, map layers, pulse animation and selection for one mounted map
"""

import asyncio
from typing import Any, Dict, List, Optional
import httpx
import structlog

from models.base import RiskLevel
from models.model import FilterState, LayerStatus, Selection
from services.detail_panel import DetailPanelPresenter
from services.errors import LakeServiceError
from services.geocoding_service import GeocodingService
from services.lake_service import LakeReportService
from services.layer_sync import LayerSynchronizer
from services.map_surface import MapSurface, bootstrap_map
from services.record_store import RecordStore
from services.salience import FrameClock, SalienceAnimator
from services.selection import SelectionResolver
from services.viewport import ViewportController

logger = structlog.get_logger(__name__)


class DashboardController:
    """
    Top-level state for the operator map.

    mount() bootstraps the map, starts the pulse and begins loading the
    dataset in the background, so the map reports LOADING until it lands;
    unmount() stops the pulse, settles pending detail fetches and disposes
    the map. Everything runs on the event loop.
    """

    def __init__(
        self,
        lake_service: LakeReportService,
        geocoder: Optional[GeocodingService] = None,
        surface: Optional[MapSurface] = None,
        clock: Optional[FrameClock] = None,
        refresh_on_select: Optional[bool] = None
    ):
        self.lake_service = lake_service
        self.store = RecordStore()
        self.surface = surface or MapSurface()
        self.synchronizer = LayerSynchronizer(self.store, self.surface)
        self.animator = SalienceAnimator(self.surface, clock=clock)
        self.viewport = ViewportController(self.surface)
        self.resolver = SelectionResolver(
            self.store,
            lake_service.fetch_record_detail,
            surface=self.surface,
            viewport=self.viewport,
            refresh_on_select=refresh_on_select,
        )
        self.panel = DetailPanelPresenter(geocoder)
        self.resolver.subscribe(self.panel.on_selection)
        self.mounted = False
        self.last_error: Optional[str] = None
        self._initial_load: Optional[asyncio.Task] = None

    # --- lifecycle ---

    async def mount(self):
        if self.mounted:
            return
        bootstrap_map(self.surface)
        self.synchronizer.sync()
        self.animator.start()
        self.mounted = True
        self._initial_load = asyncio.create_task(self.refresh(), name="lake-dataset-initial-load")
        logger.info("Dashboard mounted, dataset loading")

    async def wait_loaded(self) -> bool:
        """Wait for the load started by mount(); True when it succeeded"""
        if self._initial_load is None:
            return False
        return await self._initial_load

    async def unmount(self):
        if not self.mounted:
            return
        load, self._initial_load = self._initial_load, None
        if load is not None:
            load.cancel()
            await asyncio.gather(load, return_exceptions=True)
        await self.animator.stop()
        self.resolver.close()
        await self.resolver.drain()
        await self.panel.drain()
        self.synchronizer.detach()
        self.surface.remove()
        self.mounted = False
        logger.info("Dashboard unmounted")

    async def refresh(self) -> bool:
        """
        Fetch the dataset and replace the record store.

        On failure the last-known-good records stay on the map.
        """
        try:
            records = await self.lake_service.fetch_dataset()
        except (httpx.HTTPError, LakeServiceError) as e:
            self.last_error = str(e)
            logger.error("Dataset fetch failed", error=str(e), records_kept=len(self.store))
            return False

        self.last_error = None
        self.store.replace(records)
        return True

    # --- operator actions ---

    @property
    def filter_state(self) -> FilterState:
        return self.synchronizer.filter_state

    def set_filters(self, filter_state: FilterState) -> LayerStatus:
        logger.info(
            "Filters changed",
            risk_levels=sorted(filter_state.risk_levels),
            search_query=filter_state.search_query,
            year_range=filter_state.year_range
        )
        return self.synchronizer.set_filter_state(filter_state)

    def update_filters(self, **changes) -> LayerStatus:
        return self.set_filters(self.filter_state.updated(**changes))

    def click(self, longitude: float, latitude: float) -> Optional[Selection]:
        return self.resolver.click(longitude, latitude)

    def select_feature(self, properties: Dict[str, Any]) -> Optional[Selection]:
        return self.resolver.select_feature(properties)

    def close_panel(self) -> Selection:
        return self.resolver.close()

    # --- read models ---

    @property
    def selection(self) -> Selection:
        return self.resolver.selection

    @property
    def status(self) -> LayerStatus:
        return self.synchronizer.status

    def rendered_ids(self) -> List[int]:
        return [feature.id for feature in self.synchronizer.features]

    def stats(self) -> Dict[str, Any]:
        counts = self.store.count_by_risk()
        return {
            "total_lakes": len(self.store),
            "high_risk_lakes": counts.get(RiskLevel.HIGH.value, 0),
            "by_risk_level": counts,
            "rendered_lakes": len(self.synchronizer.features),
            "last_updated": self.store.last_updated.isoformat() if self.store.last_updated else None,
        }
