"""
Entries API client used by the map controller.

Wraps the HTTP surface of the API service:
  GET    /entries?lat=&lon=
  POST   /entries
  DELETE /entries/{id}
  POST   /media

Transport failures and 5xx answers become UpstreamError; 400 / 404 map to
ValidationError / NotFoundError so the controller can word its notices.
"""
import base64
import logging
from datetime import datetime
from typing import Optional, Union

import httpx

from mapsync.config import settings
from mapsync.errors import NotFoundError, UpstreamError, ValidationError
from mapsync.schemas import Coordinate, Entry

logger = logging.getLogger(__name__)


def _error_detail(resp: httpx.Response) -> str:
    try:
        detail = resp.json().get("detail")
    except (ValueError, AttributeError):
        detail = None
    return str(detail) if detail else f"HTTP {resp.status_code}"


class EntriesApiClient:
    def __init__(
        self,
        base_url: str = settings.api_url,
        timeout: float = settings.http_timeout,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self._transport = transport
        self._http: Optional[httpx.AsyncClient] = None

    async def start(self) -> None:
        self._http = httpx.AsyncClient(
            base_url=self.base_url, timeout=self.timeout, transport=self._transport
        )

    async def stop(self) -> None:
        if self._http:
            await self._http.aclose()

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        if self._http is None:
            raise UpstreamError("Entries API client not started")
        try:
            resp = await self._http.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            raise UpstreamError(f"Entries API unreachable: {exc}") from exc

        if resp.status_code == 400:
            raise ValidationError(_error_detail(resp))
        if resp.status_code == 404:
            raise NotFoundError(_error_detail(resp))
        if resp.is_error:
            raise UpstreamError(f"Entries API error: {_error_detail(resp)}")
        return resp

    async def list_entries(self, center: Optional[Coordinate] = None) -> list[Entry]:
        params = {"lat": center.lat, "lon": center.lon} if center is not None else None
        resp = await self._request("GET", "/entries", params=params)
        try:
            return [Entry.model_validate(item) for item in resp.json()]
        except ValueError as exc:
            raise UpstreamError(f"Malformed entries payload: {exc}") from exc

    async def upload_media(self, data: bytes, content_type: str = "image/jpeg") -> str:
        """Store an image and return the URL to send as mediaUrl."""
        resp = await self._request(
            "POST",
            "/media",
            json={
                "mediaBase64": base64.b64encode(data).decode("ascii"),
                "contentType": content_type,
            },
        )
        try:
            return resp.json()["url"]
        except (ValueError, KeyError, TypeError) as exc:
            raise UpstreamError("Media upload returned no URL") from exc

    async def create_entry(
        self,
        title: str,
        rank: Union[datetime, float],
        address: str,
        author_id: str,
        media_url: Optional[str] = None,
    ) -> Entry:
        payload = {
            "title": title,
            "rank": rank.isoformat() if isinstance(rank, datetime) else rank,
            "address": address,
            "authorId": author_id,
        }
        if media_url:
            payload["mediaUrl"] = media_url
        resp = await self._request("POST", "/entries", json=payload)
        try:
            return Entry.model_validate(resp.json())
        except ValueError as exc:
            raise UpstreamError(f"Malformed entry payload: {exc}") from exc

    async def delete_entry(self, entry_id: str) -> None:
        await self._request("DELETE", f"/entries/{entry_id}")
