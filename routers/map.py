from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse
import structlog

from middleware import LoggingRoute
from models.model import ClickRequest
from services.dashboard import DashboardController
from services.map_export import render_map_html
from utils.dependencies import get_dashboard

logger = structlog.get_logger(__name__)

router = APIRouter(
    prefix="/api/v1/map",
    tags=["Map"],
    route_class=LoggingRoute
)


@router.get("/features", summary="Rendered lake features")
async def get_features(dashboard: DashboardController = Depends(get_dashboard)):
    """GeoJSON currently drawn on the lake layer, with the overlay status"""
    return {
        "status": dashboard.status.value,
        "message": dashboard.synchronizer.message,
        "data": dashboard.synchronizer.feature_collection(),
    }


@router.get("/style", summary="Map style, layers and camera")
async def get_style(dashboard: DashboardController = Depends(get_dashboard)):
    """MapLibre-style description including the live pulse paint values"""
    if dashboard.surface.disposed:
        raise HTTPException(status_code=503, detail="Map is not mounted")
    style = dashboard.surface.style()
    style["camera"] = {
        "center": list(dashboard.surface.camera.center),
        "zoom": dashboard.surface.camera.zoom,
        "duration_ms": dashboard.surface.camera.duration_ms,
    }
    return style


@router.get("/render", summary="Operator map as HTML", response_class=HTMLResponse)
async def render_map(dashboard: DashboardController = Depends(get_dashboard)):
    """Folium rendering of the current map state"""
    try:
        html = render_map_html(dashboard.surface, message=dashboard.synchronizer.message)
    except Exception as e:
        logger.error("Map render failed", error=str(e), exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to render map")
    return HTMLResponse(content=html)


@router.post("/click", summary="Click on the map")
async def click_map(
    click: ClickRequest,
    dashboard: DashboardController = Depends(get_dashboard)
):
    """Hit-test the lake layer and select the topmost lake under the pointer"""
    selection = dashboard.click(click.longitude, click.latitude)
    if selection is None:
        return {"hit": False, "selection": dashboard.selection.model_dump(mode="json")}
    return {"hit": True, "selection": selection.model_dump(mode="json")}
