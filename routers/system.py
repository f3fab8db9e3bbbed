from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
import structlog
import time
from datetime import datetime, timezone

from config import settings
from middleware import LoggingRoute
from services.dashboard import DashboardController
from services.health import ServiceHealth
from utils.dependencies import get_dashboard, verify_api_key

logger = structlog.get_logger(__name__)

router = APIRouter(
    tags=["System & Monitoring"],
    route_class=LoggingRoute
)


@router.get("/health", summary="Service health check", tags=["Monitoring"])
async def health_check(request: Request):
    """Dataset and map health; 503 when either is unhealthy"""
    results = ServiceHealth.check_all_services(request.app)
    started = getattr(request.app.state, "start_time", None)
    body = {
        "status": results["overall_status"],
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.api_version,
        "uptime_seconds": round(time.time() - started, 1) if started else None,
        "services": results["services"],
    }
    if results["overall_status"] == "unhealthy":
        return JSONResponse(status_code=503, content=body)
    return body


@router.get("/api/v1/system/stats", summary="Lake statistics")
async def get_stats(dashboard: DashboardController = Depends(get_dashboard)):
    """Counts shown in the filter sidebar"""
    return dashboard.stats()


@router.post("/api/v1/system/refresh", summary="Re-fetch the lake dataset")
async def refresh_dataset(
    dashboard: DashboardController = Depends(get_dashboard),
    api_key: bool = Depends(verify_api_key)
):
    """Replace the record store with a fresh fetch; failures keep the current records"""
    refreshed = await dashboard.refresh()
    return {
        "success": refreshed,
        "error": dashboard.last_error,
        "status": dashboard.status.value,
        "stats": dashboard.stats(),
    }
