from fastapi import APIRouter, Depends, HTTPException
import httpx
import structlog

from middleware import LoggingRoute
from models.model import LakeReportUpload
from services.errors import LakeServiceError
from services.lake_service import LakeReportService
from utils.dependencies import get_lake_service, require_official, verify_api_key

logger = structlog.get_logger(__name__)

router = APIRouter(
    prefix="/api/v1/reports",
    tags=["Lake Reports"],
    route_class=LoggingRoute
)


@router.post("", summary="Upload a lake report")
async def upload_report(
    payload: LakeReportUpload,
    lake_service: LakeReportService = Depends(get_lake_service),
    session=Depends(require_official),
    api_key: bool = Depends(verify_api_key)
):
    """Forward a new lake observation to the lake-report service"""
    try:
        data = await lake_service.upload_report(payload)
    except LakeServiceError as e:
        raise HTTPException(status_code=400, detail=e.message)
    except httpx.HTTPError as e:
        logger.error("Report upload failed", lake_name=payload.lake_name, error=str(e))
        raise HTTPException(status_code=502, detail="Lake report service unavailable")
    return {"success": True, "data": data}
