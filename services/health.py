"""
Service Health Check Module
Reports on the dataset, the mounted map and the pulse animation
"""

import structlog
from typing import Dict, Any
from datetime import datetime, timezone

from models.model import LayerStatus

logger = structlog.get_logger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ServiceHealth:
    """Health check utilities for the dashboard"""

    @staticmethod
    def check_dataset(dashboard) -> Dict[str, Any]:
        """
        Dataset health: loaded records and the last fetch error

        Args:
            dashboard: DashboardController instance

        Returns:
            Health check result
        """
        if dashboard.last_error:
            # Last-known-good records stay on the map after a failed refresh
            return {
                "status": "degraded" if len(dashboard.store) else "unhealthy",
                "error": dashboard.last_error,
                "records": len(dashboard.store),
                "timestamp": _now()
            }
        if dashboard.status == LayerStatus.LOADING:
            return {"status": "loading", "records": 0, "timestamp": _now()}
        return {
            "status": "healthy",
            "records": len(dashboard.store),
            "timestamp": _now()
        }

    @staticmethod
    def check_map(dashboard) -> Dict[str, Any]:
        """
        Map health: mounted surface and a live pulse task

        Args:
            dashboard: DashboardController instance

        Returns:
            Health check result
        """
        if not dashboard.mounted or dashboard.surface.disposed:
            return {"status": "unhealthy", "error": "Map not mounted", "timestamp": _now()}
        return {
            "status": "healthy" if dashboard.animator.running else "degraded",
            "animation_running": dashboard.animator.running,
            "frames": dashboard.animator.frames,
            "timestamp": _now()
        }

    @staticmethod
    def check_all_services(app) -> Dict[str, Any]:
        """
        Check health of all services

        Args:
            app: FastAPI app instance

        Returns:
            Comprehensive health check results
        """
        results = {
            "timestamp": _now(),
            "services": {}
        }

        dashboard = getattr(app.state, "dashboard", None)
        if dashboard is None:
            results["services"]["dashboard"] = {"status": "unhealthy", "error": "Dashboard not initialized"}
        else:
            results["services"]["dataset"] = ServiceHealth.check_dataset(dashboard)
            results["services"]["map"] = ServiceHealth.check_map(dashboard)

        # Determine overall status
        statuses = [s.get("status") for s in results["services"].values()]
        if all(s == "healthy" for s in statuses):
            results["overall_status"] = "healthy"
        elif any(s == "unhealthy" for s in statuses):
            results["overall_status"] = "unhealthy"
        else:
            results["overall_status"] = "degraded"

        return results
