from fastapi import HTTPException, Depends, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import structlog

from config import settings
from services.dashboard import DashboardController
from services.geocoding_service import GeocodingService
from services.lake_service import LakeReportService
from services.session import SessionContext
from services.triage_service import TriageService

logger = structlog.get_logger(__name__)

# --- Security Dependencies ---
security = HTTPBearer(auto_error=False)


async def verify_api_key(credentials: HTTPAuthorizationCredentials = Depends(security)):
    """Verify API key for protected endpoints"""
    if not settings.api_key:
        return True  # No API key required in development

    if not credentials or credentials.credentials != settings.api_key:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or missing API key",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return True


# --- App State Dependencies ---

def _state(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        logger.error("Service not initialized", service=name)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"{name} is not initialized"
        )
    return value


def get_dashboard(request: Request) -> DashboardController:
    return _state(request, "dashboard")


def get_lake_service(request: Request) -> LakeReportService:
    return _state(request, "lake_service")


def get_geocoder(request: Request) -> GeocodingService:
    return _state(request, "geocoder")


def get_session(request: Request) -> SessionContext:
    return _state(request, "session")


def get_triage(request: Request) -> TriageService:
    return _state(request, "triage")


def require_official(session: SessionContext = Depends(get_session)) -> SessionContext:
    """Reject requests when no official is signed in"""
    if not session.is_authenticated:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Sign in as an official to perform this action"
        )
    return session
