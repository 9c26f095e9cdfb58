"""
Map synchronisation controller.

Owns the map's query state:

  center              — the coordinate the user is looking at
  last_queried_center — the center the displayed entries were fetched for
  displayed_entries   — what the markers currently show

Every retrieval is tagged with a sequence number at issue time. A response
may only replace the displayed entries (and recenter the view) if its number
is still the latest issued; anything older is discarded on arrival, however
late it arrives. There is no hard cancellation of in-flight calls.

Searches are sequenced the same way, so a slow geocode for an earlier search
cannot move the map after a later search has already been submitted.
"""
import logging
from datetime import datetime
from typing import Optional, Protocol, Sequence, Union

from mapsync.config import settings
from mapsync.errors import IdentityError, MapSyncError, UpstreamError
from mapsync.identity import decode_assertion
from mapsync.schemas import Coordinate, Entry, IdentityClaims

logger = logging.getLogger(__name__)

NOTICE_NOT_FOUND = "Address not found"
NOTICE_SIGN_IN_REQUIRED = "Sign in to publish"
NOTICE_SIGN_IN_FAILED = "Sign-in failed"
NOTICE_IMAGE_REQUIRED = "Attach an image"
NOTICE_CREATED = "Entry created!"
NOTICE_CREATE_FAILED = "Error creating entry"


class MapView(Protocol):
    def set_view(self, center: Coordinate) -> None: ...

    def notify(self, message: str) -> None: ...


class Geocoder(Protocol):
    async def resolve(self, text: str) -> Optional[Coordinate]: ...


class EntriesApi(Protocol):
    async def list_entries(self, center: Optional[Coordinate] = None) -> list[Entry]: ...

    async def upload_media(self, data: bytes, content_type: str = "image/jpeg") -> str: ...

    async def create_entry(
        self,
        title: str,
        rank: Union[datetime, float],
        address: str,
        author_id: str,
        media_url: Optional[str] = None,
    ) -> Entry: ...


def default_center() -> Coordinate:
    return Coordinate(lat=settings.default_center_lat, lon=settings.default_center_lon)


class MapSyncController:
    def __init__(
        self,
        api: EntriesApi,
        geocoder: Geocoder,
        view: MapView,
        center: Optional[Coordinate] = None,
    ) -> None:
        self.api = api
        self.geocoder = geocoder
        self.view = view
        self._center = center or default_center()
        self._last_queried_center: Optional[Coordinate] = None
        self._displayed: tuple[Entry, ...] = ()
        self._issued = 0
        self._searches = 0
        self._user: Optional[IdentityClaims] = None

    # ── State (read-only outside the controller) ──────────────────────────

    @property
    def center(self) -> Coordinate:
        return self._center

    @property
    def last_queried_center(self) -> Optional[Coordinate]:
        return self._last_queried_center

    @property
    def displayed_entries(self) -> Sequence[Entry]:
        return self._displayed

    @property
    def latest_sequence(self) -> int:
        return self._issued

    @property
    def user(self) -> Optional[IdentityClaims]:
        return self._user

    # ── Retrieval ─────────────────────────────────────────────────────────

    async def refresh(self) -> bool:
        """
        Fetch entries near the current center. Returns True only if this
        response was applied; False if it failed or was superseded.
        """
        self._issued += 1
        seq = self._issued
        center = self._center
        logger.debug("Retrieval #%d issued for (%s, %s)", seq, center.lat, center.lon)

        try:
            entries = await self.api.list_entries(center)
        except MapSyncError as exc:
            logger.warning("Retrieval #%d failed: %s", seq, exc.message)
            return False

        if seq != self._issued:
            logger.debug("Discarding stale retrieval #%d (latest is #%d)", seq, self._issued)
            return False

        self._displayed = tuple(entries)
        self._last_queried_center = center
        # Recenter to the issue-time center, not whatever is current now
        self.view.set_view(center)
        return True

    async def set_center(self, center: Coordinate) -> bool:
        self._center = center
        return await self.refresh()

    # ── Search ────────────────────────────────────────────────────────────

    async def search(self, text: str) -> bool:
        """
        Resolve `text` and move the map there. A miss leaves the center
        untouched and tells the user; blank input is ignored.
        """
        query = (text or "").strip()
        if not query:
            return False

        self._searches += 1
        search_id = self._searches
        try:
            coordinate = await self.geocoder.resolve(query)
        except UpstreamError as exc:
            logger.warning("Search for %r failed: %s", query, exc.message)
            if search_id == self._searches:
                self.view.notify(NOTICE_NOT_FOUND)
            return False

        if search_id != self._searches:
            logger.debug("Discarding stale search %r", query)
            return False
        if coordinate is None:
            self.view.notify(NOTICE_NOT_FOUND)
            return False
        return await self.set_center(coordinate)

    # ── Session ───────────────────────────────────────────────────────────

    def sign_in(self, assertion: str) -> Optional[IdentityClaims]:
        try:
            self._user = decode_assertion(assertion)
        except IdentityError as exc:
            logger.warning("Sign-in rejected: %s", exc.message)
            self.view.notify(NOTICE_SIGN_IN_FAILED)
            return None
        logger.info("Signed in as %s", self._user.email)
        return self._user

    def sign_out(self) -> None:
        self._user = None

    # ── Publishing ────────────────────────────────────────────────────────

    async def submit_entry(
        self,
        title: str,
        rank: Union[datetime, float],
        address: str,
        image: Optional[bytes],
        content_type: str = "image/jpeg",
    ) -> Optional[Entry]:
        """
        Upload the image, publish the entry, then refresh the map at the
        center current at that moment. A failed upload means the entry
        write is never attempted.
        """
        if self._user is None:
            self.view.notify(NOTICE_SIGN_IN_REQUIRED)
            return None
        if not image:
            self.view.notify(NOTICE_IMAGE_REQUIRED)
            return None

        try:
            media_url = await self.api.upload_media(image, content_type)
            entry = await self.api.create_entry(
                title=title,
                rank=rank,
                address=address,
                author_id=self._user.email,
                media_url=media_url,
            )
        except MapSyncError as exc:
            logger.error("Publishing %r failed: %s", title, exc.message)
            self.view.notify(NOTICE_CREATE_FAILED)
            return None

        self.view.notify(NOTICE_CREATED)
        await self.refresh()
        return entry
