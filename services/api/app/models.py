"""
SQLAlchemy ORM models.

Tables:
  entries — geotagged events and reviews (media bytes stored in MinIO,
            only the public URL is kept here)
"""
import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Float, Index, String, Text
from sqlalchemy.dialects.mysql import DATETIME
from sqlalchemy.orm import Mapped, mapped_column

from app.database import Base

# Microsecond precision on MySQL/TiDB so creation order survives the round trip
PreciseDateTime = DateTime().with_variant(DATETIME(fsp=6), "mysql")


def _uuid() -> str:
    return str(uuid.uuid4())


class Entry(Base):
    __tablename__ = "entries"

    entry_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=_uuid)
    kind: Mapped[str] = mapped_column(String(10), nullable=False)  # 'event' | 'review'
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    # Exactly one of the two rank columns is set, according to `kind`
    rank_at: Mapped[Optional[datetime]] = mapped_column(PreciseDateTime)
    rank_rating: Mapped[Optional[float]] = mapped_column(Float)
    address: Mapped[str] = mapped_column(Text, nullable=False)
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lon: Mapped[float] = mapped_column(Float, nullable=False)
    # False when geocoding failed and (lat, lon) is the (0, 0) sentinel
    geocoded: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    author_id: Mapped[str] = mapped_column(String(255), nullable=False)
    media_url: Mapped[Optional[str]] = mapped_column(String(1000))
    created_at: Mapped[datetime] = mapped_column(PreciseDateTime, nullable=False)

    __table_args__ = (
        Index("idx_entries_created", "created_at"),
        Index("idx_entries_author", "author_id"),
    )
