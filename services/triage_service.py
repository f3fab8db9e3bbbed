"""
Triage Service
Pending high-risk lake reports and the verify / decline actions taken on them
"""
from datetime import datetime, timezone
from typing import Dict, List, Optional
import httpx
import structlog

from models.base import VerificationStatus
from models.model import HazardRecord
from services.errors import LakeServiceError, TriageError
from services.lake_service import LakeReportService
from services.session import SessionContext

logger = structlog.get_logger(__name__)


class TriageService:
    """Notification list for authorized staff"""

    def __init__(self, lake_service: LakeReportService, session: SessionContext):
        self.lake_service = lake_service
        self.session = session
        self._reports: Dict[int, HazardRecord] = {}
        self.loading = False
        self.last_error: Optional[str] = None

    @property
    def reports(self) -> List[HazardRecord]:
        return list(self._reports.values())

    @property
    def pending(self) -> List[HazardRecord]:
        return [r for r in self._reports.values() if r.verification_status == VerificationStatus.PENDING.value]

    async def load_pending(self) -> List[HazardRecord]:
        """
        Refresh the pending high-risk list.

        A failed fetch keeps the previous list and records the error.
        """
        self.session.require_user()
        self.loading = True
        try:
            reports = await self.lake_service.fetch_pending_high_risk()
        except (httpx.HTTPError, LakeServiceError) as e:
            self.last_error = str(e)
            logger.error("Failed to fetch pending reports", error=str(e))
            return self.reports
        finally:
            self.loading = False

        self.last_error = None
        self._reports = {report.id: report for report in reports}
        logger.info("Pending reports loaded", count=len(reports))
        return self.reports

    async def verify(self, report_id: int) -> HazardRecord:
        return await self._review(report_id, VerificationStatus.VERIFIED)

    async def decline(self, report_id: int) -> HazardRecord:
        return await self._review(report_id, VerificationStatus.REJECTED)

    async def _review(self, report_id: int, outcome: VerificationStatus) -> HazardRecord:
        user = self.session.require_user()
        report = self._reports.get(report_id)
        if report is None:
            raise TriageError(report_id, "not in the pending list")
        if report.verification_status != VerificationStatus.PENDING.value:
            raise TriageError(report_id, f"already {report.verification_status}")

        action = self.lake_service.verify_report if outcome == VerificationStatus.VERIFIED else self.lake_service.reject_report
        try:
            await action(report_id)
        except LakeServiceError as e:
            raise TriageError(report_id, e.message) from e
        except httpx.HTTPError as e:
            logger.error("Review request failed", report_id=report_id, outcome=outcome.value, error=str(e))
            raise TriageError(report_id, "review request failed") from e

        now = datetime.now(timezone.utc)
        if outcome == VerificationStatus.VERIFIED:
            changes = {"verification_status": outcome.value, "verified_by_id": user.id, "verified_at": now, "verified_by": user}
        else:
            changes = {"verification_status": outcome.value, "decline_by_id": user.id, "declined_at": now}

        updated = report.model_copy(update=changes)
        self._reports[report_id] = updated
        logger.info("Report reviewed", report_id=report_id, outcome=outcome.value, reviewer_id=user.id)
        return updated
