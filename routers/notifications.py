"""
Notification Router
Pending high-risk lake reports awaiting review by authorized staff.
"""

from fastapi import APIRouter, Depends, HTTPException
import structlog

from middleware import LoggingRoute
from services.errors import NotAuthenticatedError, TriageError
from services.triage_service import TriageService
from utils.dependencies import get_triage, require_official, verify_api_key

logger = structlog.get_logger(__name__)

router = APIRouter(
    prefix="/api/v1/notifications",
    tags=["Notifications"],
    route_class=LoggingRoute,
    dependencies=[Depends(require_official)]
)


@router.get("", summary="Pending high-risk reports")
async def list_notifications(triage: TriageService = Depends(get_triage)):
    """
    Refresh and list the pending high-risk reports.

    A failed refresh returns the previous list with the error attached.
    """
    reports = await triage.load_pending()
    return {
        "success": triage.last_error is None,
        "error": triage.last_error,
        "count": len(reports),
        "reports": [report.to_wire() for report in reports],
    }


async def _review(triage: TriageService, report_id: int, verify: bool):
    try:
        report = await (triage.verify(report_id) if verify else triage.decline(report_id))
    except NotAuthenticatedError as e:
        raise HTTPException(status_code=401, detail=str(e))
    except TriageError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return {"success": True, "report": report.to_wire()}


@router.patch("/{report_id}/verify", summary="Verify a report")
async def verify_report(
    report_id: int,
    triage: TriageService = Depends(get_triage),
    api_key: bool = Depends(verify_api_key)
):
    return await _review(triage, report_id, verify=True)


@router.patch("/{report_id}/decline", summary="Decline a report")
async def decline_report(
    report_id: int,
    triage: TriageService = Depends(get_triage),
    api_key: bool = Depends(verify_api_key)
):
    return await _review(triage, report_id, verify=False)
