"""
Glacier Watch Services
Centralized export of the map engine and its collaborator clients
"""

from .base_service import BaseService
from .errors import GlacierWatchError, LakeServiceError, NotAuthenticatedError, TriageError

# Collaborator clients
from .lake_service import LakeReportService
from .geocoding_service import GeocodingService
from .session import SessionContext
from .triage_service import TriageService

# Map engine
from .record_store import RecordStore
from .filter_predicate import matches, filter_records
from .map_surface import MapSurface, bootstrap_map
from .layer_sync import LayerSynchronizer
from .salience import SalienceAnimator, FrameClock, PulseState
from .selection import SelectionResolver, SelectionState
from .viewport import ViewportController
from .detail_panel import DetailPanelPresenter
from .dashboard import DashboardController
from .health import ServiceHealth

__all__ = [
    # Base classes and errors
    "BaseService",
    "GlacierWatchError",
    "LakeServiceError",
    "NotAuthenticatedError",
    "TriageError",

    # Collaborators
    "LakeReportService",
    "GeocodingService",
    "SessionContext",
    "TriageService",

    # Map engine
    "RecordStore",
    "matches",
    "filter_records",
    "MapSurface",
    "bootstrap_map",
    "LayerSynchronizer",
    "SalienceAnimator",
    "FrameClock",
    "PulseState",
    "SelectionResolver",
    "SelectionState",
    "ViewportController",
    "DetailPanelPresenter",
    "DashboardController",

    # Health
    "ServiceHealth",
]
