"""Application metrics using the Prometheus client library.

All metrics live in one place so the inventory of what the service
measures is a single file.  Other modules import specific metrics and
increment/observe them at the point of action.

Prometheus PULLS from GET /metrics; nothing here pushes anywhere.

Counters only go up, so tests assert on before/after deltas rather than
absolute values.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP metrics (populated by the MetricsMiddleware)
# ---------------------------------------------------------------------------

REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests by method, endpoint, and status code",
    ["method", "endpoint", "status_code"],
)

REQUEST_DURATION = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    # A claim makes up to five sequential upstream round-trips, so the
    # upper buckets matter more here than for a plain CRUD API.
    buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Claim pipeline metrics
# ---------------------------------------------------------------------------

BADGE_CLAIMS = Counter(
    "badge_claims_total",
    "Badge claim requests by outcome",
    ["outcome"],  # "issued" | "rejected" (4xx) | "failed" (5xx)
)

SIDE_EFFECT_FAILURES = Counter(
    "badge_side_effect_failures_total",
    "Best-effort tasks that failed after a badge was issued",
    ["task"],  # "email" | "sheet"
)
