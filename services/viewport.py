"""
Viewport controller: camera moves that follow a resolved selection
"""
from typing import Optional
import structlog

from config import settings
from models.model import HazardRecord
from services.map_surface import MapSurface

logger = structlog.get_logger(__name__)


class ViewportController:
    def __init__(
        self,
        surface: MapSurface,
        zoom: Optional[float] = None,
        duration_ms: Optional[int] = None
    ):
        self.surface = surface
        self.zoom = zoom if zoom is not None else settings.fly_to_zoom
        self.duration_ms = duration_ms if duration_ms is not None else settings.fly_to_duration_ms

    def fly_to(
        self,
        latitude: float,
        longitude: float,
        zoom: Optional[float] = None,
        duration_ms: Optional[int] = None
    ) -> None:
        zoom = self.zoom if zoom is None else zoom
        duration_ms = self.duration_ms if duration_ms is None else duration_ms
        self.surface.fly_to((longitude, latitude), zoom, duration_ms)
        logger.debug("Flying to", latitude=latitude, longitude=longitude, zoom=zoom)

    def focus(self, record: HazardRecord) -> bool:
        """Center on a record; records without a real position are ignored"""
        if not record.has_position:
            return False
        self.fly_to(record.latitude, record.longitude)
        return True

    def reset(self) -> None:
        self.surface.fly_to(self.surface.initial_center, self.surface.initial_zoom, self.duration_ms)
