"""
Geocoding Service
Reverse lookup for the detail panel and search-as-you-type for the upload flow (Geoapify)
"""
import asyncio
from typing import List, Optional, Set
import httpx
from pydantic import ValidationError

from config import settings
from models.model import GeocodeResult
from services.base_service import BaseService

MIN_SEARCH_LENGTH = 3


class GeocodingService(BaseService):
    """
    Best-effort geocoding.

    Failures never propagate: reverse lookups yield None and searches yield
    an empty list. Searches follow a cancel-previous discipline so at most
    one request is outstanding.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
        **kwargs
    ):
        super().__init__(base_url or settings.geoapify_url, client=client, **kwargs)
        self.api_key = api_key if api_key is not None else settings.geoapify_api_key

    def _setup(self):
        self._inflight: Optional[asyncio.Task] = None
        self._superseded: Set[asyncio.Task] = set()

    @property
    def has_inflight_search(self) -> bool:
        return self._inflight is not None and not self._inflight.done()

    async def reverse_geocode(self, latitude: float, longitude: float) -> Optional[str]:
        """Human-readable place name for a position, or None"""
        if not self.api_key:
            self.logger.debug("Reverse geocode skipped, no API key configured")
            return None

        params = {
            "lat": latitude,
            "lon": longitude,
            "format": "json",
            "apiKey": self.api_key,
        }
        try:
            response = await self._api_call_with_retry(
                self.client.get, self._url("/geocode/reverse"), params=params, timeout=self.timeout
            )
            response.raise_for_status()
            results = response.json().get("results") or []
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            self.logger.warning("Reverse geocoding failed", latitude=latitude, longitude=longitude, error=str(e))
            return None

        if not results:
            return None
        return results[0].get("formatted") or None

    def cancel_search(self):
        """Abort the outstanding search, if any"""
        task = self._inflight
        if task is not None and not task.done():
            self._superseded.add(task)
            task.cancel()
        self._inflight = None

    async def search(self, text: str) -> List[GeocodeResult]:
        """
        Forward-geocode locality suggestions for free text.

        A new call aborts the previous one; the aborted caller receives an
        empty list.
        """
        self.cancel_search()
        if not text or len(text.strip()) < MIN_SEARCH_LENGTH:
            return []

        task = asyncio.create_task(self._search(text.strip()))
        self._inflight = task
        try:
            return await task
        except asyncio.CancelledError:
            if task in self._superseded:
                return []
            raise
        finally:
            self._superseded.discard(task)
            if self._inflight is task:
                self._inflight = None

    async def _search(self, text: str) -> List[GeocodeResult]:
        if not self.api_key:
            self.logger.debug("Geocode search skipped, no API key configured")
            return []

        params = {
            "text": text,
            "type": "locality",
            "limit": 5,
            "format": "json",
            "bias": settings.geoapify_search_bias,
            "apiKey": self.api_key,
        }
        try:
            response = await self.client.get(self._url("/geocode/search"), params=params, timeout=self.timeout)
            response.raise_for_status()
            rows = response.json().get("results") or []
        except (httpx.HTTPError, ValueError, AttributeError) as e:
            self.logger.warning("Geocode search failed", text=text, error=str(e))
            return []

        suggestions = []
        for row in rows:
            try:
                suggestions.append(GeocodeResult.model_validate(row))
            except ValidationError:
                self.logger.debug("Skipping malformed geocode result", text=text)
        return suggestions
