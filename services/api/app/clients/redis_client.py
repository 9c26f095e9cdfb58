"""
Redis client wrapper.

Responsibilities:
  • Geocode cache — STRING (JSON {lat, lon}) keyed by geo:{normalised address}

Nominatim's usage policy asks clients to cache results; only positive
lookups are cached so a later retry can still resolve a new address.
The cache is an optimisation: when Redis is absent or failing, lookups
fall through to the geocoder.
"""
import json
import logging
from typing import Optional

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from app.config import settings
from app.schemas import Coordinate

logger = logging.getLogger(__name__)

_redis: Optional[aioredis.Redis] = None


async def init_redis() -> None:
    global _redis
    _redis = aioredis.Redis(
        host=settings.redis_host,
        port=settings.redis_port,
        decode_responses=True,
    )
    try:
        await _redis.ping()
        logger.info("Redis connected at %s:%s", settings.redis_host, settings.redis_port)
    except RedisError as exc:
        logger.warning("Redis unavailable (%s), geocode cache disabled until it recovers", exc)


async def close_redis() -> None:
    if _redis is not None:
        await _redis.aclose()


def get_redis() -> Optional[aioredis.Redis]:
    return _redis


def _geo_key(address: str) -> str:
    return "geo:" + " ".join(address.lower().split())


# ─────────────────────── Geocode cache ────────────────────────────────────

async def get_cached_coordinate(address: str) -> Optional[Coordinate]:
    r = get_redis()
    if r is None:
        return None
    try:
        raw = await r.get(_geo_key(address))
    except RedisError as exc:
        logger.warning("Geocode cache read failed: %s", exc)
        return None
    if not raw:
        return None
    try:
        return Coordinate(**json.loads(raw))
    except (ValueError, TypeError):
        logger.warning("Discarding corrupt geocode cache entry for %r", address)
        return None


async def cache_coordinate(address: str, coordinate: Coordinate) -> None:
    r = get_redis()
    if r is None:
        return
    try:
        await r.set(
            _geo_key(address),
            json.dumps({"lat": coordinate.lat, "lon": coordinate.lon}),
            ex=settings.geocode_cache_ttl,
        )
    except RedisError as exc:
        logger.warning("Geocode cache write failed: %s", exc)
