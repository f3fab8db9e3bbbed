from fastapi import APIRouter, Depends
import structlog

from middleware import LoggingRoute
from models.model import FeatureClickRequest
from services.dashboard import DashboardController
from utils.dependencies import get_dashboard

logger = structlog.get_logger(__name__)

router = APIRouter(
    prefix="/api/v1/selection",
    tags=["Selection"],
    route_class=LoggingRoute
)


def _selection_body(dashboard: DashboardController):
    return {
        "state": dashboard.resolver.state.value,
        "selection": dashboard.selection.model_dump(mode="json"),
    }


@router.get("", summary="Active selection")
async def get_selection(dashboard: DashboardController = Depends(get_dashboard)):
    return _selection_body(dashboard)


@router.post("", summary="Select a clicked feature")
async def select_feature(
    click: FeatureClickRequest,
    dashboard: DashboardController = Depends(get_dashboard)
):
    """Resolve the properties of the topmost feature under the pointer"""
    dashboard.select_feature(click.properties)
    return _selection_body(dashboard)


@router.delete("", summary="Close the detail panel")
async def close_selection(dashboard: DashboardController = Depends(get_dashboard)):
    dashboard.close_panel()
    return _selection_body(dashboard)


@router.get("/panel", summary="Detail panel view model")
async def get_panel(dashboard: DashboardController = Depends(get_dashboard)):
    return {"panel": dashboard.panel.panel}
