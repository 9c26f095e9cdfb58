"""
Pydantic value types and request / response schemas.
Kept separate from ORM models to avoid coupling transport to storage.

Wire format uses camelCase keys (authorId, mediaUrl, createdAt); Python code
uses the snake_case field names.
"""
from datetime import datetime
from enum import Enum
from typing import Optional, Union

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


# ──────────────────────────── Geometry ────────────────────────────────────

class Coordinate(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)

    class Config:
        frozen = True


# Stand-in position for entries whose address could not be resolved
SENTINEL_COORDINATE = Coordinate(lat=0.0, lon=0.0)


class Location(BaseModel):
    address: str
    coordinate: Coordinate
    # False only when `coordinate` is the sentinel from a failed lookup
    resolved: bool = True


# ──────────────────────────── Entries ─────────────────────────────────────

class EntryKind(str, Enum):
    EVENT = "event"     # rank is the occurrence timestamp
    REVIEW = "review"   # rank is a rating in [0, 5]


Rank = Union[float, datetime]

RATING_MIN = 0.0
RATING_MAX = 5.0


def parse_rank(value):
    """
    Interpret a raw rank: numbers are ratings, strings are ISO-8601 timestamps.
    Booleans are rejected even though they are ints in Python.
    """
    if isinstance(value, bool):
        raise ValueError("rank must be a rating number or an ISO-8601 timestamp")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, datetime):
        return value
    if isinstance(value, str):
        try:
            return datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            pass
    raise ValueError("rank must be a rating number or an ISO-8601 timestamp")


def rank_kind(rank: Rank) -> EntryKind:
    return EntryKind.EVENT if isinstance(rank, datetime) else EntryKind.REVIEW


class EntryCreate(_CamelModel):
    """Body of POST /entries. The location is still free text here."""
    title: str
    rank: Rank
    address: str
    author_id: str
    media_url: Optional[str] = None

    @field_validator("rank", mode="before")
    @classmethod
    def _parse_rank(cls, value):
        return parse_rank(value)


class EntryDraft(BaseModel):
    """An entry ready for the store: address already resolved."""
    title: str
    rank: Rank
    location: Location
    author_id: str
    media_url: Optional[str] = None


class GeoTaggedEntry(_CamelModel):
    id: str
    kind: EntryKind
    title: str
    location: Location
    rank: Rank
    author_id: str
    media_url: Optional[str] = None
    created_at: datetime


class MessageResponse(BaseModel):
    message: str


# ──────────────────────────── Media ───────────────────────────────────────

class MediaUpload(_CamelModel):
    # Base64-encoded image payload, stored in MinIO
    media_base64: str = Field(..., min_length=1)
    content_type: str = Field("image/jpeg", pattern=r"^image/[a-z0-9.+-]+$")


class MediaResponse(BaseModel):
    url: str
