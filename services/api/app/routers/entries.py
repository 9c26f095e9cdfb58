"""
Entry endpoints:
  GET    /entries?lat=&lon= — list entries, newest first, optionally near a point
  GET    /entries/{id}      — fetch a single entry
  POST   /entries           — geocode the address and publish an entry
  DELETE /entries/{id}      — remove an entry from future queries
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status

from app.dependencies import get_entry_service
from app.schemas import EntryCreate, GeoTaggedEntry, MessageResponse
from app.services.entries import EntryService

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("", response_model=list[GeoTaggedEntry])
async def list_entries(
    lat: Optional[str] = Query(None, description="Latitude of the proximity origin"),
    lon: Optional[str] = Query(None, description="Longitude of the proximity origin"),
    service: EntryService = Depends(get_entry_service),
):
    """
    Both coordinates are accepted as raw strings: a value that does not parse
    as a finite in-range number disables proximity filtering instead of
    failing the request.
    """
    return await service.retrieve(lat, lon)


@router.get("/{entry_id}", response_model=GeoTaggedEntry)
async def get_entry(entry_id: str, service: EntryService = Depends(get_entry_service)):
    return await service.get(entry_id)


@router.post("", response_model=GeoTaggedEntry, status_code=status.HTTP_201_CREATED)
async def create_entry(
    body: EntryCreate, service: EntryService = Depends(get_entry_service)
):
    """
    Entry write path:

    1. Resolve the free-text address (falls back to the (0, 0) sentinel).
    2. Validate and persist; id and createdAt are assigned by the store.
    """
    return await service.create(body)


@router.delete("/{entry_id}", response_model=MessageResponse)
async def delete_entry(entry_id: str, service: EntryService = Depends(get_entry_service)):
    await service.delete(entry_id)
    return MessageResponse(message="Entry deleted")
