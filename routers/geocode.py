from fastapi import APIRouter, Depends, Query
import structlog

from middleware import LoggingRoute
from services.geocoding_service import GeocodingService
from utils.dependencies import get_geocoder

logger = structlog.get_logger(__name__)

router = APIRouter(
    prefix="/api/v1/geocode",
    tags=["Geocoding"],
    route_class=LoggingRoute
)


@router.get("/search", summary="Locality suggestions")
async def search_places(
    text: str = Query(..., max_length=200, description="Free text typed by the operator"),
    geocoder: GeocodingService = Depends(get_geocoder)
):
    """Search-as-you-type; a newer request aborts the one still in flight"""
    results = await geocoder.search(text)
    return {
        "query": text,
        "results": [result.model_dump() for result in results],
    }


@router.get("/reverse", summary="Place name for a position")
async def reverse_geocode(
    lat: float = Query(..., ge=-90.0, le=90.0),
    lon: float = Query(..., ge=-180.0, le=180.0),
    geocoder: GeocodingService = Depends(get_geocoder)
):
    label = await geocoder.reverse_geocode(lat, lon)
    return {"latitude": lat, "longitude": lon, "label": label}
