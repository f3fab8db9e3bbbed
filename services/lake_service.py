"""
Lake Report Service Client
Dataset, per-record detail, triage and upload calls against the lake-report backend
"""
from typing import List, Optional, Dict, Any
import httpx
from pydantic import ValidationError

from config import settings
from models.model import HazardRecord, LakeReportUpload, OfficialProfile
from services.base_service import BaseService
from services.errors import LakeServiceError


class LakeReportService(BaseService):
    """Client for the lake-report HTTP service"""

    def __init__(self, base_url: Optional[str] = None, client: Optional[httpx.AsyncClient] = None, **kwargs):
        super().__init__(base_url or settings.lake_api_url, client=client, **kwargs)

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        response = await self.client.request(method, self._url(path), timeout=self.timeout, **kwargs)
        # 4xx bodies still carry the {success, message} envelope
        if response.is_server_error:
            response.raise_for_status()
        return response

    async def _get(self, path: str, **kwargs) -> httpx.Response:
        return await self._api_call_with_retry(self._request, "GET", path, **kwargs)

    def _unwrap(self, response: httpx.Response, operation: str) -> Any:
        """Return the `data` member of a {success, data, message} envelope"""
        try:
            body = response.json()
        except ValueError:
            raise LakeServiceError(f"{operation}: response is not JSON", response.status_code) from None

        if not isinstance(body, dict) or not body.get("success"):
            message = body.get("message") if isinstance(body, dict) else None
            raise LakeServiceError(message or f"{operation} failed", response.status_code)
        return body.get("data")

    def _parse_records(self, rows: Any) -> List[HazardRecord]:
        if not isinstance(rows, list):
            raise LakeServiceError("Dataset payload is not a list")

        records = []
        skipped = 0
        for row in rows:
            try:
                records.append(HazardRecord.model_validate(row))
            except ValidationError as e:
                skipped += 1
                self.logger.warning("Skipping malformed lake record", error=str(e), row_id=row.get("id") if isinstance(row, dict) else None)
        if skipped:
            self._log_operation("parse_records", {"accepted": len(records), "skipped": skipped}, level="warning")
        return records

    async def fetch_dataset(self) -> List[HazardRecord]:
        """Bulk read of every lake report (no pagination)"""
        response = await self._get("/lakereport")
        records = self._parse_records(self._unwrap(response, "fetch_dataset"))
        self._log_operation("fetch_dataset", {"count": len(records)})
        return records

    async def fetch_record_detail(self, record_id: int) -> HazardRecord:
        """Full record by id, used to upgrade a stub selection"""
        response = await self._get(f"/lakereport/{record_id}")
        data = self._unwrap(response, "fetch_record_detail")
        try:
            return HazardRecord.model_validate(data)
        except ValidationError as e:
            raise LakeServiceError(f"Malformed detail for lake {record_id}: {e}") from e

    async def fetch_pending_high_risk(self) -> List[HazardRecord]:
        """High-risk reports still waiting for review"""
        response = await self._get("/lakereport/pending/high-risk")
        return self._parse_records(self._unwrap(response, "fetch_pending_high_risk"))

    async def verify_report(self, record_id: int) -> Optional[Dict[str, Any]]:
        response = await self._request("PATCH", f"/lakereport/verify/{record_id}")
        data = self._unwrap(response, "verify_report")
        self._log_operation("verify_report", {"record_id": record_id})
        return data

    async def reject_report(self, record_id: int) -> Optional[Dict[str, Any]]:
        response = await self._request("PATCH", f"/lakereport/reject/{record_id}")
        data = self._unwrap(response, "reject_report")
        self._log_operation("reject_report", {"record_id": record_id})
        return data

    async def upload_report(self, payload: LakeReportUpload) -> Optional[Dict[str, Any]]:
        """Submit a new lake report; the backend assesses risk and queues it as PENDING"""
        response = await self._request(
            "POST",
            "/lakereport/uploaddata",
            json=payload.model_dump(by_alias=True),
        )
        data = self._unwrap(response, "upload_report")
        self._log_operation("upload_report", {"lake_name": payload.lake_name})
        return data

    async def sign_in(self, email: str, password: str) -> OfficialProfile:
        response = await self._request(
            "POST",
            "/official/signin",
            json={"email": email, "password": password},
        )
        data = self._unwrap(response, "sign_in")
        if isinstance(data, dict) and isinstance(data.get("user"), dict):
            data = data["user"]
        try:
            return OfficialProfile.model_validate(data)
        except ValidationError as e:
            raise LakeServiceError(f"Malformed profile in sign-in response: {e}") from e

    async def sign_out(self) -> None:
        response = await self._request("POST", "/official/signout")
        self._unwrap(response, "sign_out")
