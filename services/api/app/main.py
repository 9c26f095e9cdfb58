"""
Geotagged Entries API — entry point.

Startup sequence:
  1. Configure OTel tracing (→ Jaeger via OTLP)
  2. Initialise DB connection pool (TiDB) and create tables if not present
  3. Connect to Redis (geocode cache)
  4. Initialise MinIO client & bucket
  5. Start the geocoding HTTP client (Nominatim)
  6. Expose Prometheus /metrics endpoint
"""
import logging

from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import make_asgi_app

from app.config import settings
from app.database import init_db
from app.errors import register_exception_handlers
from app.telemetry import setup_tracing, instrument_app
from app.clients.geocoding_client import geocoding_client
from app.clients.minio_client import init_minio
from app.clients.redis_client import close_redis, init_redis
from app.routers import entries, media

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)

# Set up tracing before the app is created so all imports are instrumented
setup_tracing()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage startup and shutdown of all external connections."""
    logger.info("Starting Geotagged Entries API (env=%s)", settings.environment)

    await init_db()
    await init_redis()
    init_minio()                    # sync — boto3 is not async
    await geocoding_client.start()

    logger.info("All services connected. API ready.")
    yield

    logger.info("Shutting down...")
    await geocoding_client.stop()
    await close_redis()


app = FastAPI(
    title="Geotagged Entries API",
    description=(
        "Publish events and reviews pinned to a place, and discover the ones "
        "near a point on the map."
    ),
    version="1.0.0",
    lifespan=lifespan,
)

# Browser map client is served from a different origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

# ── Routers ────────────────────────────────────────────────────────────────
app.include_router(entries.router, prefix="/entries", tags=["Entries"])
app.include_router(media.router, prefix="/media", tags=["Media"])

# ── Prometheus metrics endpoint ────────────────────────────────────────────
# Mounted at /metrics — scraped by Prometheus
metrics_app = make_asgi_app()
app.mount("/metrics", metrics_app)

# ── OTel FastAPI instrumentation ──────────────────────────────────────────
instrument_app(app)


@app.get("/health", tags=["Health"])
async def health():
    return {"status": "ok", "service": settings.service_name}
