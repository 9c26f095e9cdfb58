"""
Content store: persistence of geotagged entries on top of the async session.

Entries are immutable once inserted; the only mutations are insert and
delete. No locking: no invariant spans more than one row.
"""
import logging
import math
from datetime import datetime, timedelta, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import NotFoundError, ValidationError
from app.models import Entry
from app.schemas import (
    RATING_MAX,
    RATING_MIN,
    Coordinate,
    EntryDraft,
    EntryKind,
    GeoTaggedEntry,
    Location,
    Rank,
    rank_kind,
)

logger = logging.getLogger(__name__)

_last_created_at: datetime | None = None


def _next_created_at() -> datetime:
    """
    Naive-UTC creation instant, strictly increasing within this process so
    that newest-first ordering never ties between back-to-back inserts.
    """
    global _last_created_at
    now = datetime.now(timezone.utc).replace(tzinfo=None)
    if _last_created_at is not None and now <= _last_created_at:
        now = _last_created_at + timedelta(microseconds=1)
    _last_created_at = now
    return now


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def validate_fields(title: str, author_id: str, address: str, rank: Rank) -> None:
    """Field checks shared by the write path and the store; raises ValidationError."""
    if not title or not title.strip():
        raise ValidationError("title is required")
    if not author_id or not author_id.strip():
        raise ValidationError("authorId is required")
    if not address or not address.strip():
        raise ValidationError("address is required")
    if rank_kind(rank) is EntryKind.REVIEW:
        if math.isnan(rank) or not RATING_MIN <= rank <= RATING_MAX:
            raise ValidationError(
                f"rating must be between {RATING_MIN:g} and {RATING_MAX:g}, got {rank}"
            )


def _validate(draft: EntryDraft) -> None:
    validate_fields(draft.title, draft.author_id, draft.location.address, draft.rank)


def to_entry(row: Entry) -> GeoTaggedEntry:
    kind = EntryKind(row.kind)
    rank = _as_utc(row.rank_at) if kind is EntryKind.EVENT else row.rank_rating
    return GeoTaggedEntry(
        id=row.entry_id,
        kind=kind,
        title=row.title,
        location=Location(
            address=row.address,
            coordinate=Coordinate(lat=row.lat, lon=row.lon),
            resolved=row.geocoded,
        ),
        rank=rank,
        author_id=row.author_id,
        media_url=row.media_url,
        created_at=_as_utc(row.created_at),
    )


class EntryStore:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def insert(self, draft: EntryDraft) -> GeoTaggedEntry:
        """Validate, assign id + created_at, persist and return the full entry."""
        _validate(draft)
        kind = rank_kind(draft.rank)
        coordinate = draft.location.coordinate
        row = Entry(
            kind=kind.value,
            title=draft.title.strip(),
            rank_at=_to_naive_utc(draft.rank) if kind is EntryKind.EVENT else None,
            rank_rating=draft.rank if kind is EntryKind.REVIEW else None,
            address=draft.location.address.strip(),
            lat=coordinate.lat,
            lon=coordinate.lon,
            geocoded=draft.location.resolved,
            author_id=draft.author_id.strip(),
            media_url=draft.media_url or None,
            created_at=_next_created_at(),
        )
        self.session.add(row)
        await self.session.flush()     # materialise entry_id
        logger.debug("Inserted entry %s (%s)", row.entry_id, kind.value)
        return to_entry(row)

    async def list_all(self) -> list[GeoTaggedEntry]:
        """Every live entry, newest first. Re-queried on each call."""
        rows = await self.session.execute(
            select(Entry).order_by(Entry.created_at.desc())
        )
        return [to_entry(row) for row in rows.scalars().all()]

    async def get(self, entry_id: str) -> GeoTaggedEntry:
        row = await self.session.get(Entry, entry_id)
        if row is None:
            raise NotFoundError(f"Entry {entry_id} not found")
        return to_entry(row)

    async def delete(self, entry_id: str) -> None:
        row = await self.session.get(Entry, entry_id)
        if row is None:
            raise NotFoundError(f"Entry {entry_id} not found")
        await self.session.delete(row)
        await self.session.flush()
        logger.debug("Deleted entry %s", entry_id)
