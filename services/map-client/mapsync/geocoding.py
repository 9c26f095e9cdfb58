"""
Nominatim search for the map's "find a place" box.

Returns None when nothing matches; raises UpstreamError when the service
cannot be reached or answers with something that is not a result list.
"""
from typing import Optional

import httpx

from mapsync.config import settings
from mapsync.errors import UpstreamError
from mapsync.schemas import Coordinate


class NominatimGeocoder:
    def __init__(
        self,
        base_url: str = settings.nominatim_url,
        timeout: float = settings.http_timeout,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None

    async def start(self) -> None:
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=self.timeout,
            transport=self._transport,
            headers={
                "User-Agent": settings.nominatim_user_agent,
                "Accept-Language": settings.nominatim_language,
            },
        )

    async def stop(self) -> None:
        if self._http:
            await self._http.aclose()

    async def resolve(self, text: str) -> Optional[Coordinate]:
        if self._http is None:
            raise UpstreamError("Geocoder not started")
        try:
            resp = await self._http.get(
                "/search", params={"format": "json", "limit": 1, "q": text}
            )
            resp.raise_for_status()
            results = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise UpstreamError(f"Geocoder unavailable: {exc}") from exc

        if not isinstance(results, list):
            raise UpstreamError("Geocoder returned an unexpected payload")
        if not results:
            return None
        try:
            return Coordinate(lat=float(results[0]["lat"]), lon=float(results[0]["lon"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise UpstreamError(f"Geocoder returned a malformed match: {exc}") from exc
