"""
Prometheus-based metrics for production monitoring.
Provides /metrics endpoint for scraping.
"""
from prometheus_client import Counter, Histogram, Gauge, generate_latest, CONTENT_TYPE_LATEST
from fastapi import APIRouter, Response


# Counters
payment_links_created_total = Counter(
    "payment_links_created_total",
    "Total payment link requests",
    ["status"],  # success, error
)

payment_status_updates_total = Counter(
    "payment_status_updates_total",
    "Total payment status transitions",
    ["result"],  # success, failed, conflict, not_found, error
)

kol_video_uploads_total = Counter(
    "kol_video_uploads_total",
    "Total KOL video uploads",
    ["result"],  # success, rejected, upstream_error
)

chat_requests_total = Counter(
    "chat_requests_total",
    "Total chat completion requests",
    ["outcome"],  # success, rate_limited, error
)

http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests handled",
    ["method", "status_code"],
)

circuit_breaker_state = Gauge(
    "circuit_breaker_state",
    "Circuit breaker state (0=closed, 1=open)",
    ["name"],
)

# Histograms
upstream_request_duration_seconds = Histogram(
    "upstream_request_duration_seconds",
    "Remote service request duration",
    ["service"],  # gemini, cloudinary, payos
    buckets=[0.1, 0.5, 1, 2, 5, 10, 30, 60, 120],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request handling duration",
    ["method"],
    buckets=[0.05, 0.1, 0.5, 1, 2, 5, 10, 30],
)


# Metrics endpoint router
router = APIRouter()


@router.get("/metrics")
def metrics_endpoint() -> Response:
    """Prometheus metrics endpoint for scraping."""
    return Response(
        content=generate_latest(),
        media_type=CONTENT_TYPE_LATEST,
    )
