"""
Layer Synchronizer
Keeps the map's lake source equal to the filtered record set
"""
from typing import Any, Callable, Dict, List, Optional
import structlog

from models.model import FilterState, LayerStatus, RenderFeature
from services.filter_predicate import filter_records
from services.map_surface import MapSurface, SOURCE_ID
from services.record_store import RecordStore

logger = structlog.get_logger(__name__)

StatusListener = Callable[[LayerStatus], None]


class LayerSynchronizer:
    """
    Recomputes the rendered feature set whenever the records or the filter change.

    Every recompute builds the complete FeatureCollection and swaps it into
    the source with a single set_data call, so the map never shows a
    partial set. Runs on the event loop and never awaits I/O.
    """

    def __init__(
        self,
        store: RecordStore,
        surface: MapSurface,
        filter_state: Optional[FilterState] = None,
        source_id: str = SOURCE_ID
    ):
        self.store = store
        self.surface = surface
        self.source_id = source_id
        self.filter_state = filter_state or FilterState()
        self.status = LayerStatus.LOADING
        self.features: List[RenderFeature] = []
        self._status_listeners: List[StatusListener] = []
        self._unsubscribe = store.subscribe(self._on_store_change)

    def detach(self):
        """Stop following the record store"""
        self._unsubscribe()

    def on_status(self, listener: StatusListener):
        self._status_listeners.append(listener)

    def set_filter_state(self, filter_state: FilterState) -> LayerStatus:
        self.filter_state = filter_state
        return self.sync()

    def _on_store_change(self, store: RecordStore):
        self.sync()

    def sync(self) -> LayerStatus:
        visible = filter_records(self.store, self.filter_state)
        features = [RenderFeature.from_record(record) for record in visible]
        collection = {
            "type": "FeatureCollection",
            "features": [feature.to_geojson() for feature in features],
        }

        if self.surface.set_data(self.source_id, collection):
            self.features = features
        else:
            logger.debug("Layer sync skipped, source unavailable", source=self.source_id)

        if self.store.is_empty:
            status = LayerStatus.LOADING
        elif not features:
            status = LayerStatus.NO_MATCHES
        else:
            status = LayerStatus.READY

        logger.debug(
            "Layer synchronized",
            records=len(self.store),
            rendered=len(features),
            status=status.value
        )
        self._set_status(status)
        return status

    def _set_status(self, status: LayerStatus):
        if status == self.status:
            return
        self.status = status
        for listener in list(self._status_listeners):
            try:
                listener(status)
            except Exception as e:
                logger.error("Layer status listener failed", error=str(e), exc_info=True)

    def feature_collection(self) -> Dict[str, Any]:
        return self.surface.get_source(self.source_id) or {"type": "FeatureCollection", "features": []}

    @property
    def message(self) -> Optional[str]:
        if self.status == LayerStatus.LOADING:
            return "Loading lake data..."
        if self.status == LayerStatus.NO_MATCHES:
            return "No lakes match current filters"
        return None
