"""
Entry service: composes the content store, the geocoder and the proximity
filter into the read and write paths exposed by the /entries router.

Read path   list_all() ─► [origin parsed?] ─► filter_by_proximity(radius)
Write path  resolve(address) ─► [no match / geocoder down → (0, 0)] ─► insert()
"""
import logging
import time
from typing import Optional, Protocol

from opentelemetry import trace

from app.config import settings
from app.errors import ParseError, UpstreamError
from app.proximity import Origin, filter_by_proximity, parse_origin
from app.schemas import (
    SENTINEL_COORDINATE,
    Coordinate,
    EntryCreate,
    EntryDraft,
    GeoTaggedEntry,
    Location,
)
from app.store import EntryStore, validate_fields
from app.telemetry import (
    ENTRIES_CREATED_TOTAL,
    ENTRIES_RETURNED_TOTAL,
    GEOCODE_FALLBACK_TOTAL,
    RETRIEVAL_LATENCY,
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class Geocoder(Protocol):
    async def resolve(self, address: str) -> Optional[Coordinate]: ...


class EntryService:
    def __init__(
        self,
        store: EntryStore,
        geocoder: Geocoder,
        radius: float = settings.proximity_radius,
    ) -> None:
        self.store = store
        self.geocoder = geocoder
        self.radius = radius

    async def retrieve(
        self, lat: Optional[str] = None, lon: Optional[str] = None
    ) -> list[GeoTaggedEntry]:
        """
        All entries newest first; narrowed to those near (lat, lon) only when
        both values parse as finite numbers. Anything else is treated as if
        no origin had been sent.
        """
        start_time = time.time()
        with tracer.start_as_current_span("retrieve_entries") as span:
            entries = await self.store.list_all()
            span.set_attribute("entries.total", len(entries))

            origin: Optional[Origin] = None
            if lat is not None or lon is not None:
                try:
                    origin = parse_origin(lat, lon)
                except ParseError as exc:
                    logger.debug("Ignoring proximity origin: %s", exc.message)

            if origin is not None:
                entries = filter_by_proximity(entries, origin, self.radius)
                span.set_attribute("entries.origin", f"{origin.lat},{origin.lon}")

            span.set_attribute("entries.returned", len(entries))

        ENTRIES_RETURNED_TOTAL.labels(
            filtered="true" if origin is not None else "false"
        ).inc(len(entries))
        RETRIEVAL_LATENCY.observe(time.time() - start_time)
        return entries

    async def resolve_location(self, address: str) -> Location:
        """
        Geocode `address`. Never fails: no match or an unreachable geocoder
        both yield the (0, 0) sentinel with resolved=False.
        """
        try:
            coordinate = await self.geocoder.resolve(address)
        except UpstreamError as exc:
            logger.warning("Geocoding %r failed (%s), storing at sentinel", address, exc.message)
            GEOCODE_FALLBACK_TOTAL.labels(reason="upstream_error").inc()
            return Location(address=address, coordinate=SENTINEL_COORDINATE, resolved=False)

        if coordinate is None:
            logger.warning("No match for %r, storing at sentinel", address)
            GEOCODE_FALLBACK_TOTAL.labels(reason="no_match").inc()
            return Location(address=address, coordinate=SENTINEL_COORDINATE, resolved=False)

        return Location(address=address, coordinate=coordinate, resolved=True)

    async def create(self, body: EntryCreate) -> GeoTaggedEntry:
        """
        Write path: fields are checked first so a rejected draft never reaches
        the geocoder, then the address is resolved before the insert, so a
        stored entry always carries a coordinate.
        """
        validate_fields(body.title, body.author_id, body.address, body.rank)
        with tracer.start_as_current_span("create_entry") as span:
            location = await self.resolve_location(body.address)
            span.set_attribute("entry.geocoded", location.resolved)

            entry = await self.store.insert(
                EntryDraft(
                    title=body.title,
                    rank=body.rank,
                    location=location,
                    author_id=body.author_id,
                    media_url=body.media_url,
                )
            )
            span.set_attribute("entry.id", entry.id)

        ENTRIES_CREATED_TOTAL.labels(kind=entry.kind.value).inc()
        logger.info("Entry created: %s by %s", entry.id, entry.author_id)
        return entry

    async def get(self, entry_id: str) -> GeoTaggedEntry:
        return await self.store.get(entry_id)

    async def delete(self, entry_id: str) -> None:
        await self.store.delete(entry_id)
        logger.info("Entry deleted: %s", entry_id)
