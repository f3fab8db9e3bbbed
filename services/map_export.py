"""
Folium rendering of the map surface for operators
"""
from html import escape
from typing import Any, Optional

import folium
from branca.element import Element

from config import settings

from services.map_surface import (
    MapSurface,
    DOTS_LAYER_ID,
    PULSE_LAYER_ID,
    RISK_COLORS,
    FALLBACK_COLOR,
    STROKE_COLOR,
    color_for,
    evaluate_filter,
)

DOT_RADIUS = 6


def _paint_number(value: Any, default: float) -> float:
    """Numeric value of a paint property; zoom expressions resolve to their last stop"""
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, list) and value and isinstance(value[-1], (int, float)):
        return float(value[-1])
    return default


def _popup_html(properties: dict) -> str:
    confidence = properties.get("confidence")
    confidence_text = f"{float(confidence):.1f}%" if isinstance(confidence, (int, float)) else "N/A"
    return (
        f"<b>{escape(str(properties.get('name') or 'Unnamed lake'))}</b><br>"
        f"Risk: <b>{escape(str(properties.get('riskLevel', 'N/A')))}</b><br>"
        f"Confidence: <b>{confidence_text}</b><br>"
        f"ID: {escape(str(properties.get('id')))}"
    )


def _legend_html() -> str:
    rows = "".join(
        f"<div><span style='display:inline-block;width:10px;height:10px;border-radius:50%;"
        f"background:{color};margin-right:6px'></span>{level.title()}</div>"
        for level, color in list(RISK_COLORS.items()) + [("Unknown", FALLBACK_COLOR)]
    )
    return (
        "<div style='position:fixed;bottom:24px;left:24px;z-index:9999;background:white;"
        "padding:8px 12px;border-radius:8px;font:12px sans-serif;box-shadow:0 1px 3px rgba(0,0,0,0.2)'>"
        f"<b>Flood risk</b>{rows}</div>"
    )


def _banner_html(message: str) -> str:
    return (
        "<div style='position:fixed;top:16px;left:50%;transform:translateX(-50%);z-index:9999;"
        "background:rgba(202,138,4,0.9);color:white;padding:6px 14px;border-radius:6px;"
        f"font:13px sans-serif'>{escape(message)}</div>"
    )


def render_map(surface: MapSurface, message: Optional[str] = None, tiles: Optional[str] = None) -> folium.Map:
    """Draw the dot layer, the pulse halo and a legend onto a folium map"""
    longitude, latitude = surface.camera.center
    fmap = folium.Map(
        location=[latitude, longitude],
        zoom_start=round(surface.camera.zoom),
        tiles=tiles or settings.map_tiles,
    )

    dots = surface.get_layer(DOTS_LAYER_ID)
    pulse = surface.get_layer(PULSE_LAYER_ID)
    source = surface.get_source(dots.source) if dots else None
    features = (source or {}).get("features", [])

    if pulse is not None:
        halo_group = folium.FeatureGroup(name="High-risk pulse")
        halo_radius = _paint_number(pulse.paint.get("circle-radius"), 10)
        halo_opacity = max(_paint_number(pulse.paint.get("circle-opacity"), 0.0), 0.0)
        for feature in features:
            properties = feature.get("properties") or {}
            if not evaluate_filter(pulse.filter, properties):
                continue
            lon, lat = feature["geometry"]["coordinates"][:2]
            folium.CircleMarker(
                location=[lat, lon],
                radius=halo_radius,
                stroke=False,
                fill=True,
                fill_color=pulse.paint.get("circle-color", RISK_COLORS["HIGH"]),
                fill_opacity=halo_opacity,
            ).add_to(halo_group)
        halo_group.add_to(fmap)

    if dots is not None:
        dot_group = folium.FeatureGroup(name="Glacier lakes")
        for feature in features:
            properties = feature.get("properties") or {}
            lon, lat = feature["geometry"]["coordinates"][:2]
            folium.CircleMarker(
                location=[lat, lon],
                radius=DOT_RADIUS,
                color=STROKE_COLOR,
                weight=1.5,
                fill=True,
                fill_color=color_for(properties.get("riskLevel")),
                fill_opacity=0.95,
                tooltip=escape(str(properties.get("name") or "")),
                popup=folium.Popup(_popup_html(properties), max_width=300),
            ).add_to(dot_group)
        dot_group.add_to(fmap)

    folium.LayerControl(collapsed=True).add_to(fmap)
    fmap.get_root().html.add_child(Element(_legend_html()))
    if message:
        fmap.get_root().html.add_child(Element(_banner_html(message)))
    return fmap


def render_map_html(surface: MapSurface, message: Optional[str] = None) -> str:
    return render_map(surface, message=message).get_root().render()
