"""
Observability setup:
  - OpenTelemetry distributed tracing → Jaeger (via OTLP gRPC)
  - Prometheus metrics: retrieval latency, entries created/returned,
    geocoding fallbacks, media upload errors

Both are initialised once at startup and injected into FastAPI via middleware.
"""
import logging

from opentelemetry import trace
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.httpx import HTTPXClientInstrumentor
from opentelemetry.instrumentation.redis import RedisInstrumentor
from opentelemetry.instrumentation.sqlalchemy import SQLAlchemyInstrumentor
from prometheus_client import Counter, Histogram

from app.config import settings

logger = logging.getLogger(__name__)

# ─────────────────────────── Prometheus Metrics ───────────────────────────
RETRIEVAL_LATENCY = Histogram(
    "entries_retrieval_latency_seconds",
    "End-to-end latency of GET /entries",
    buckets=[0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0],
)

ENTRIES_CREATED_TOTAL = Counter(
    "entries_created_total",
    "Total number of entries created",
    ["kind"],  # 'event' or 'review'
)

ENTRIES_RETURNED_TOTAL = Counter(
    "entries_returned_total",
    "Entries returned by GET /entries",
    ["filtered"],  # 'true' when a proximity origin was applied
)

GEOCODE_FALLBACK_TOTAL = Counter(
    "geocode_fallback_total",
    "Entries stored at the (0, 0) sentinel because geocoding failed",
    ["reason"],  # 'no_match' or 'upstream_error'
)

MEDIA_UPLOAD_ERRORS_TOTAL = Counter(
    "media_upload_errors_total",
    "Number of media uploads rejected by object storage",
)


# ─────────────────────────── OpenTelemetry Setup ──────────────────────────
def setup_tracing() -> None:
    """Configure the global OTel TracerProvider with OTLP/Jaeger export."""
    resource = Resource.create(
        {
            "service.name": settings.service_name,
            "deployment.environment": settings.environment,
        }
    )

    provider = TracerProvider(resource=resource)

    try:
        otlp_exporter = OTLPSpanExporter(
            endpoint=settings.otel_exporter_otlp_endpoint,
            insecure=True,
        )
        provider.add_span_processor(BatchSpanProcessor(otlp_exporter))
        logger.info(
            "OTel tracing configured → %s", settings.otel_exporter_otlp_endpoint
        )
    except Exception as exc:
        logger.warning("Could not connect to OTLP exporter: %s — traces disabled", exc)

    trace.set_tracer_provider(provider)

    # Auto-instrument popular libraries so their spans appear in traces
    HTTPXClientInstrumentor().instrument()
    RedisInstrumentor().instrument()
    SQLAlchemyInstrumentor().instrument()


def instrument_app(app) -> None:  # noqa: ANN001
    """Call after app is created to add FastAPI request spans."""
    FastAPIInstrumentor.instrument_app(app)
