# main.py - Glacier Watch API
import logging
import sys
import time
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.trustedhost import TrustedHostMiddleware
from fastapi.responses import JSONResponse

from config import settings
from middleware import setup_logging_middleware
from services.dashboard import DashboardController
from services.geocoding_service import GeocodingService
from services.lake_service import LakeReportService
from services.session import SessionContext
from services.triage_service import TriageService

from routers import map, filters, selection, session, notifications, geocode, reports, system

ROUTERS = (map, filters, selection, session, notifications, geocode, reports, system)


def configure_logging():
    """stdlib logging to stdout, rendered by structlog as JSON or console lines"""
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
    )
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


configure_logging()
logger = structlog.get_logger(__name__)


def build_services(app: FastAPI):
    """Collaborator clients, the session and the dashboard, stored on app.state"""
    app.state.lake_service = LakeReportService()
    app.state.geocoder = GeocodingService()
    app.state.session = SessionContext(app.state.lake_service)
    app.state.triage = TriageService(app.state.lake_service, app.state.session)
    app.state.dashboard = DashboardController(app.state.lake_service, geocoder=app.state.geocoder)


async def release_services(app: FastAPI):
    try:
        await app.state.dashboard.unmount()
    except Exception as e:
        logger.error("Dashboard unmount failed", error=str(e), exc_info=True)

    app.state.session.clear()
    for client in (app.state.geocoder, app.state.lake_service):
        try:
            await client.close()
        except Exception as e:
            logger.error("Closing HTTP client failed", client=type(client).__name__, error=str(e))


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Mount the map on startup; stop the pulse and close clients on shutdown"""
    logger.info("Starting Glacier Watch API", version=settings.api_version, lake_api=settings.lake_api_url)
    app.state.start_time = time.time()

    try:
        build_services(app)
    except Exception as e:
        logger.error("Service initialization failed", error=str(e))
        raise RuntimeError("Service initialization failed") from e

    # The first dataset fetch runs in the background; until it lands the map reports loading
    await app.state.dashboard.mount()

    yield

    logger.info("Shutting down Glacier Watch API")
    await release_services(app)
    logger.info("Application shutdown completed")


app = FastAPI(
    title=settings.api_title,
    description=settings.api_description,
    version=settings.api_version,
    lifespan=lifespan
)

app = setup_logging_middleware(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE"],
    allow_headers=["*"],
)

# Debug mode accepts any host
if not settings.debug:
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=settings.trusted_hosts)

for module in ROUTERS:
    app.include_router(module.router)


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error("Unhandled exception", error=str(exc), path=request.url.path, exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal Server Error",
            "detail": str(exc) if settings.debug else "An unexpected error occurred",
            "timestamp": datetime.now(timezone.utc).isoformat()
        }
    )


@app.get("/", summary="API Information", tags=["General"])
async def root():
    """Service name, version and the API sections"""
    return {
        "message": "Glacier Watch - Glacier Lake Flood Risk Dashboard",
        "version": settings.api_version,
        "docs": app.docs_url,
        "health": "/health",
        "api": {
            module.__name__.rsplit(".", 1)[-1]: module.router.prefix
            for module in ROUTERS
            if module.router.prefix
        }
    }
