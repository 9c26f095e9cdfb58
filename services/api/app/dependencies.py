"""FastAPI dependency providers wiring request-scoped sessions to services."""
from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.clients.geocoding_client import geocoding_client
from app.database import get_db
from app.services.entries import EntryService, Geocoder
from app.store import EntryStore


def get_geocoder() -> Geocoder:
    return geocoding_client


def get_entry_service(
    db: AsyncSession = Depends(get_db),
    geocoder: Geocoder = Depends(get_geocoder),
) -> EntryService:
    return EntryService(EntryStore(db), geocoder)
