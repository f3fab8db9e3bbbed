"""
Headless Map Surface
In-process model of the operator map: GeoJSON sources, styled layers, camera and hit-testing.

The surface is what the engine renders into. The HTTP API publishes it as
MapLibre-style JSON and services.map_export draws it with folium.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple
import structlog

from config import settings
from models.base import RiskLevel

logger = structlog.get_logger(__name__)

SOURCE_ID = "glacier-lakes"
DOTS_LAYER_ID = "glacier-lake-dots"
PULSE_LAYER_ID = "glacier-lake-pulse"

RISK_COLORS: Dict[str, str] = {
    RiskLevel.HIGH.value: "#ff3b30",
    RiskLevel.MEDIUM.value: "#ff9500",
    RiskLevel.LOW.value: "#00c2ff",
}
FALLBACK_COLOR = "#999999"
STROKE_COLOR = "#0b1220"


def color_for(risk_level: Any) -> str:
    """Dot color for a classification, neutral grey when unrecognized"""
    return RISK_COLORS.get(str(risk_level).upper(), FALLBACK_COLOR)


def empty_collection() -> Dict[str, Any]:
    return {"type": "FeatureCollection", "features": []}


@dataclass
class LayerSpec:
    """One drawable layer bound to a source"""
    id: str
    source: str
    type: str = "circle"
    paint: Dict[str, Any] = field(default_factory=dict)
    filter: Optional[List[Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        spec = {"id": self.id, "type": self.type, "source": self.source, "paint": dict(self.paint)}
        if self.filter is not None:
            spec["filter"] = self.filter
        return spec


@dataclass
class CameraState:
    center: Tuple[float, float]  # (longitude, latitude)
    zoom: float
    duration_ms: int = 0
    moves: int = 0


def evaluate_filter(expression: Optional[List[Any]], properties: Dict[str, Any]) -> bool:
    """Evaluate the subset of layer filter expressions the engine uses"""
    if expression is None:
        return True

    op = expression[0]
    if op == "all":
        return all(evaluate_filter(sub, properties) for sub in expression[1:])
    if op == "any":
        return any(evaluate_filter(sub, properties) for sub in expression[1:])
    if op in ("==", "!="):
        left, right = (_evaluate_operand(arg, properties) for arg in expression[1:3])
        return (left == right) if op == "==" else (left != right)
    raise ValueError(f"Unsupported filter operator: {op!r}")


def _evaluate_operand(operand: Any, properties: Dict[str, Any]) -> Any:
    if isinstance(operand, list) and operand and operand[0] == "get":
        return properties.get(operand[1])
    return operand


class MapSurface:
    """Sources, layers and camera of one mounted map"""

    def __init__(
        self,
        center: Optional[Tuple[float, float]] = None,
        zoom: Optional[float] = None
    ):
        self.initial_center = center or (settings.map_center_longitude, settings.map_center_latitude)
        self.initial_zoom = zoom if zoom is not None else settings.map_zoom
        self.camera = CameraState(center=self.initial_center, zoom=self.initial_zoom)
        self._sources: Dict[str, Dict[str, Any]] = {}
        self._source_versions: Dict[str, int] = {}
        self._layers: Dict[str, LayerSpec] = {}
        self.disposed = False

    # --- sources ---

    def add_source(self, source_id: str, data: Optional[Dict[str, Any]] = None):
        if self.disposed:
            logger.debug("add_source on disposed map ignored", source=source_id)
            return
        self._sources[source_id] = data or empty_collection()
        self._source_versions[source_id] = 0

    def get_source(self, source_id: str) -> Optional[Dict[str, Any]]:
        return self._sources.get(source_id)

    def source_version(self, source_id: str) -> int:
        return self._source_versions.get(source_id, 0)

    def set_data(self, source_id: str, collection: Dict[str, Any]) -> bool:
        """Replace a source's whole FeatureCollection in one assignment"""
        if self.disposed or source_id not in self._sources:
            logger.debug("set_data skipped", source=source_id, disposed=self.disposed)
            return False
        self._sources[source_id] = collection
        self._source_versions[source_id] += 1
        return True

    # --- layers ---

    def add_layer(self, layer: LayerSpec):
        if self.disposed:
            logger.debug("add_layer on disposed map ignored", layer=layer.id)
            return
        if layer.source not in self._sources:
            raise ValueError(f"Layer {layer.id!r} references unknown source {layer.source!r}")
        self._layers[layer.id] = layer

    def get_layer(self, layer_id: str) -> Optional[LayerSpec]:
        return self._layers.get(layer_id)

    def has_layer(self, layer_id: str) -> bool:
        return not self.disposed and layer_id in self._layers

    def remove_layer(self, layer_id: str):
        self._layers.pop(layer_id, None)

    def layers(self) -> List[LayerSpec]:
        return list(self._layers.values())

    def set_paint_property(self, layer_id: str, name: str, value: Any) -> bool:
        layer = self._layers.get(layer_id)
        if self.disposed or layer is None:
            return False
        layer.paint[name] = value
        return True

    # --- interaction ---

    def query_rendered_features(
        self,
        longitude: float,
        latitude: float,
        layer_id: str = DOTS_LAYER_ID,
        tolerance: Optional[float] = None
    ) -> List[Dict[str, Any]]:
        """
        Features of a layer under a point, topmost first.

        Features later in the source are drawn later, so they are on top.
        """
        layer = self._layers.get(layer_id)
        if self.disposed or layer is None:
            return []
        tolerance = settings.hit_tolerance_degrees if tolerance is None else tolerance
        source = self._sources.get(layer.source) or empty_collection()

        hits = []
        for feature in source.get("features", []):
            properties = feature.get("properties") or {}
            if not evaluate_filter(layer.filter, properties):
                continue
            lon, lat = feature["geometry"]["coordinates"][:2]
            if math.hypot(lon - longitude, lat - latitude) <= tolerance:
                hits.append(feature)
        hits.reverse()
        return hits

    def fly_to(self, center: Tuple[float, float], zoom: float, duration_ms: int):
        if self.disposed:
            return
        self.camera = CameraState(
            center=(float(center[0]), float(center[1])),
            zoom=zoom,
            duration_ms=duration_ms,
            moves=self.camera.moves + 1,
        )

    # --- lifecycle ---

    def remove(self):
        """Tear down the map; later mutations become no-ops"""
        self._layers.clear()
        self._sources.clear()
        self._source_versions.clear()
        self.disposed = True
        logger.info("Map surface removed")

    def style(self) -> Dict[str, Any]:
        return {
            "version": 8,
            "center": list(self.camera.center),
            "zoom": self.camera.zoom,
            "sources": {
                source_id: {"type": "geojson", "data": data}
                for source_id, data in self._sources.items()
            },
            "layers": [layer.to_dict() for layer in self._layers.values()],
        }


def bootstrap_map(surface: MapSurface):
    """Add the lake source, the base dot layer and the HIGH-only pulse layer"""
    surface.add_source(SOURCE_ID, empty_collection())

    color_match: List[Any] = ["match", ["get", "riskLevel"]]
    for level, color in RISK_COLORS.items():
        color_match.extend([level, color])
    color_match.append(FALLBACK_COLOR)

    surface.add_layer(LayerSpec(
        id=DOTS_LAYER_ID,
        source=SOURCE_ID,
        paint={
            "circle-radius": ["interpolate", ["linear"], ["zoom"], 6, 4, 9, 6, 12, 9],
            "circle-color": color_match,
            "circle-stroke-width": 1.5,
            "circle-stroke-color": STROKE_COLOR,
            "circle-opacity": 0.95,
        },
    ))
    surface.add_layer(LayerSpec(
        id=PULSE_LAYER_ID,
        source=SOURCE_ID,
        filter=["==", ["get", "riskLevel"], RiskLevel.HIGH.value],
        paint={
            "circle-radius": 10,
            "circle-color": RISK_COLORS[RiskLevel.HIGH.value],
            "circle-opacity": 0.0,
        },
    ))
    logger.info("Map bootstrapped", source=SOURCE_ID, layers=[DOTS_LAYER_ID, PULSE_LAYER_ID])
