"""
Geocoding client: free-text address → Coordinate via Nominatim.

resolve() distinguishes two failure modes:
  • the geocoder answered but found nothing   → returns None
  • the geocoder is unreachable / answered garbage → raises UpstreamError

Callers decide how to degrade; the create path falls back to the (0, 0)
sentinel for both.
"""
import logging
from typing import Optional

import httpx

from app.clients.redis_client import cache_coordinate, get_cached_coordinate
from app.config import settings
from app.errors import UpstreamError
from app.schemas import Coordinate

logger = logging.getLogger(__name__)


class GeocodingClient:
    def __init__(self) -> None:
        self._http: Optional[httpx.AsyncClient] = None

    async def start(self) -> None:
        self._http = httpx.AsyncClient(
            base_url=settings.nominatim_url,
            timeout=settings.geocode_timeout,
            headers={"User-Agent": settings.nominatim_user_agent},
        )

    async def stop(self) -> None:
        if self._http:
            await self._http.aclose()

    async def resolve(self, address: str) -> Optional[Coordinate]:
        """
        Resolve `address` to its best match.

        Request:
          GET /search?format=json&limit=1&q=<address>

        Response:
          [{ "lat": "40.41", "lon": "-3.70", ... }]   (strings, as Nominatim sends them)
        """
        query = address.strip()
        if not query:
            return None

        cached = await get_cached_coordinate(query)
        if cached is not None:
            return cached

        if self._http is None:
            raise UpstreamError("Geocoding client not started")

        try:
            resp = await self._http.get(
                "/search", params={"format": "json", "limit": 1, "q": query}
            )
            resp.raise_for_status()
            results = resp.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise UpstreamError(f"Geocoder unavailable: {exc}") from exc

        if not isinstance(results, list):
            raise UpstreamError("Geocoder returned an unexpected payload")
        if not results:
            logger.info("No geocoding match for %r", query)
            return None

        try:
            best = results[0]
            coordinate = Coordinate(lat=float(best["lat"]), lon=float(best["lon"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise UpstreamError(f"Geocoder returned a malformed match: {exc}") from exc

        await cache_coordinate(query, coordinate)
        return coordinate


# Singleton
geocoding_client = GeocodingClient()
