"""Value types the map client reads from the Entries API."""
from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class Coordinate(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)

    class Config:
        frozen = True


class Location(BaseModel):
    address: str
    coordinate: Coordinate
    resolved: bool = True


class Entry(BaseModel):
    id: str
    kind: str
    title: str
    location: Location
    rank: Union[float, datetime]
    author_id: str
    media_url: Optional[str] = None
    created_at: datetime

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        frozen = True


class IdentityClaims(BaseModel):
    email: str
    name: Optional[str] = None
    picture: Optional[str] = None
    issued_at: datetime
    expires_at: datetime
