import asyncio

import httpx
import pytest

from services.geocoding_service import GeocodingService

BASE_URL = "https://geo.test/v1"


def _service(handler, api_key="test-key"):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return GeocodingService(api_key=api_key, base_url=BASE_URL, client=client, retry_attempts=1)


class TestReverseGeocode:
    @pytest.mark.asyncio
    async def test_returns_formatted_label(self):
        def handler(request):
            assert request.url.path == "/v1/geocode/reverse"
            assert request.url.params["apiKey"] == "test-key"
            assert request.url.params["format"] == "json"
            return httpx.Response(200, json={"results": [{"formatted": "Khumjung, Nepal"}]})

        label = await _service(handler).reverse_geocode(27.898, 86.925)

        assert label == "Khumjung, Nepal"

    @pytest.mark.asyncio
    async def test_no_results_is_none(self):
        label = await _service(lambda r: httpx.Response(200, json={"results": []})).reverse_geocode(27.9, 86.9)

        assert label is None

    @pytest.mark.asyncio
    async def test_errors_are_swallowed(self):
        label = await _service(lambda r: httpx.Response(500)).reverse_geocode(27.9, 86.9)

        assert label is None

    @pytest.mark.asyncio
    async def test_skipped_without_api_key(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={"results": []})

        assert await _service(handler, api_key="").reverse_geocode(27.9, 86.9) is None
        assert calls == []


class TestSearch:
    @pytest.mark.asyncio
    async def test_search_params_and_results(self):
        def handler(request):
            params = request.url.params
            assert params["text"] == "Namche"
            assert params["type"] == "locality"
            assert params["limit"] == "5"
            return httpx.Response(200, json={"results": [
                {"formatted": "Namche Bazaar, Nepal", "lat": 27.80, "lon": 86.71, "address_line2": "Solukhumbu"},
                {"formatted": "Broken row"},
            ]})

        results = await _service(handler).search(" Namche ")

        assert len(results) == 1
        assert results[0].latitude == 27.80
        assert results[0].address_line2 == "Solukhumbu"

    @pytest.mark.asyncio
    async def test_short_text_skips_request(self):
        calls = []

        def handler(request):
            calls.append(request)
            return httpx.Response(200, json={"results": []})

        assert await _service(handler).search("Na") == []
        assert calls == []

    @pytest.mark.asyncio
    async def test_new_search_cancels_previous(self):
        release = asyncio.Event()
        seen = []

        async def handler(request):
            text = request.url.params["text"]
            seen.append(text)
            if text == "Namc":
                await release.wait()
            return httpx.Response(200, json={"results": [{"formatted": text, "lat": 27.8, "lon": 86.7}]})

        service = _service(handler)
        first = asyncio.create_task(service.search("Namc"))
        await asyncio.sleep(0.01)
        assert service.has_inflight_search

        second = await service.search("Namche")
        release.set()

        assert await first == []
        assert [r.formatted for r in second] == ["Namche"]
        assert seen == ["Namc", "Namche"]
        assert not service.has_inflight_search

    @pytest.mark.asyncio
    async def test_cancel_search_without_inflight(self):
        service = _service(lambda r: httpx.Response(200, json={"results": []}))

        service.cancel_search()

        assert not service.has_inflight_search
