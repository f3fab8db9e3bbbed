import json

import httpx
import pytest

from models.model import LakeReportUpload
from services.errors import LakeServiceError
from services.lake_service import LakeReportService

BASE_URL = "https://lakes.test"


def _service(handler, retry_attempts=1):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return LakeReportService(base_url=BASE_URL, client=client, retry_attempts=retry_attempts)


def _envelope(data=None, success=True, message=None, status_code=200):
    body = {"success": success, "data": data}
    if message:
        body["message"] = message
    return httpx.Response(status_code, json=body)


class TestDataset:
    @pytest.mark.asyncio
    async def test_fetch_dataset_parses_rows(self, rows):
        def handler(request):
            assert request.method == "GET"
            assert request.url.path == "/lakereport"
            return _envelope(rows)

        service = _service(handler)
        records = await service.fetch_dataset()

        assert [r.id for r in records] == [1, 2, 3, 4]
        assert records[1].risk_level == "LOW"

    @pytest.mark.asyncio
    async def test_malformed_rows_are_skipped(self, rows):
        def handler(request):
            return _envelope(rows + [{"lakeName": "No id"}, {"id": "abc"}])

        records = await _service(handler).fetch_dataset()

        assert len(records) == 4

    @pytest.mark.asyncio
    async def test_unsuccessful_envelope_raises(self):
        def handler(request):
            return _envelope(success=False, message="Database offline", status_code=400)

        with pytest.raises(LakeServiceError) as exc_info:
            await _service(handler).fetch_dataset()

        assert exc_info.value.message == "Database offline"
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_non_list_payload_raises(self):
        def handler(request):
            return _envelope({"id": 1})

        with pytest.raises(LakeServiceError):
            await _service(handler).fetch_dataset()

    @pytest.mark.asyncio
    async def test_server_error_raises_http_error(self):
        def handler(request):
            return httpx.Response(502, text="bad gateway")

        with pytest.raises(httpx.HTTPStatusError):
            await _service(handler).fetch_dataset()


class TestRetries:
    @pytest.mark.asyncio
    async def test_get_retries_transport_errors(self, rows):
        calls = []

        def handler(request):
            calls.append(request)
            if len(calls) == 1:
                raise httpx.ConnectError("connection refused", request=request)
            return _envelope(rows)

        records = await _service(handler, retry_attempts=3).fetch_dataset()

        assert len(calls) == 2
        assert len(records) == 4

    @pytest.mark.asyncio
    async def test_writes_are_not_retried(self):
        calls = []

        def handler(request):
            calls.append(request)
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(httpx.ConnectError):
            await _service(handler, retry_attempts=3).verify_report(1)

        assert len(calls) == 1


class TestDetailAndTriage:
    @pytest.mark.asyncio
    async def test_fetch_record_detail(self, rows):
        def handler(request):
            assert request.url.path == "/lakereport/42"
            return _envelope({**rows[0], "id": 42})

        record = await _service(handler).fetch_record_detail(42)

        assert record.id == 42
        assert record.lake_name == "Imja Tsho"

    @pytest.mark.asyncio
    async def test_missing_detail_raises(self):
        def handler(request):
            return _envelope(success=False, message="Lake report not found", status_code=404)

        with pytest.raises(LakeServiceError):
            await _service(handler).fetch_record_detail(42)

    @pytest.mark.asyncio
    async def test_pending_high_risk(self, rows):
        def handler(request):
            assert request.url.path == "/lakereport/pending/high-risk"
            return _envelope([rows[0], rows[3]])

        reports = await _service(handler).fetch_pending_high_risk()

        assert [r.id for r in reports] == [1, 4]

    @pytest.mark.asyncio
    async def test_verify_and_reject_paths(self):
        seen = []

        def handler(request):
            seen.append((request.method, request.url.path))
            return _envelope({"id": 1})

        service = _service(handler)
        await service.verify_report(1)
        await service.reject_report(4)

        assert seen == [("PATCH", "/lakereport/verify/1"), ("PATCH", "/lakereport/reject/4")]


class TestUploadAndAuth:
    @pytest.mark.asyncio
    async def test_upload_uses_wire_names(self):
        captured = {}

        def handler(request):
            captured.update(json.loads(request.content))
            return _envelope({"id": 99})

        payload = LakeReportUpload(lakeName="Dig Tsho", latitude=27.87, longitude=86.58, Elevation_m=4365)
        data = await _service(handler).upload_report(payload)

        assert data == {"id": 99}
        assert captured["lakeName"] == "Dig Tsho"
        assert captured["Elevation_m"] == 4365
        assert captured["region"] == "Unknown"

    @pytest.mark.asyncio
    async def test_sign_in_unwraps_user(self):
        def handler(request):
            assert request.url.path == "/official/signin"
            return _envelope({"user": {"id": "7", "name": "Pema Sherpa", "department": "DHM"}, "token": "x"})

        profile = await _service(handler).sign_in("pema@example.org", "secret")

        assert profile.id == 7
        assert profile.department == "DHM"

    @pytest.mark.asyncio
    async def test_sign_in_rejected(self):
        def handler(request):
            return _envelope(success=False, message="Invalid credentials", status_code=401)

        with pytest.raises(LakeServiceError) as exc_info:
            await _service(handler).sign_in("pema@example.org", "wrong")

        assert exc_info.value.status_code == 401

    @pytest.mark.asyncio
    async def test_close_leaves_shared_client_open(self):
        client = httpx.AsyncClient(transport=httpx.MockTransport(lambda r: _envelope([])))
        service = LakeReportService(base_url=BASE_URL, client=client)

        await service.close()

        assert not client.is_closed
        await client.aclose()
