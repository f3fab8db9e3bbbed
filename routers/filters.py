from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError
import structlog

from middleware import LoggingRoute
from models.model import FilterUpdate
from services.dashboard import DashboardController
from utils.dependencies import get_dashboard

logger = structlog.get_logger(__name__)

router = APIRouter(
    prefix="/api/v1/filters",
    tags=["Filters"],
    route_class=LoggingRoute
)


def _filter_body(dashboard: DashboardController):
    state = dashboard.filter_state
    return {
        "risk_levels": sorted(state.risk_levels),
        "search_query": state.search_query,
        "year_range": list(state.year_range) if state.year_range else None,
    }


@router.get("", summary="Current filter state")
async def get_filters(dashboard: DashboardController = Depends(get_dashboard)):
    return _filter_body(dashboard)


@router.put("", summary="Update filters")
async def update_filters(
    update: FilterUpdate,
    dashboard: DashboardController = Depends(get_dashboard)
):
    """Apply a partial filter update and recompute the lake layer"""
    changes = update.model_dump(exclude_unset=True, exclude={"clear_year_range"})
    if update.clear_year_range:
        changes["year_range"] = None

    try:
        status = dashboard.update_filters(**changes)
    except ValidationError as e:
        raise HTTPException(status_code=422, detail=e.errors(include_url=False, include_context=False))

    return {
        "filters": _filter_body(dashboard),
        "status": status.value,
        "message": dashboard.synchronizer.message,
        "rendered_ids": dashboard.rendered_ids(),
    }
