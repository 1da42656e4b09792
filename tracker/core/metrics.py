"""Application metrics using the Prometheus client library.

Single inventory of everything the service measures. Other modules import
specific metrics and increment/observe them at the point of action.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP request metrics (populated by MetricsMiddleware)
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
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

ACTIVE_REQUESTS = Gauge(
    "http_active_requests",
    "Number of HTTP requests currently being processed",
)

# ---------------------------------------------------------------------------
# Domain metrics
# ---------------------------------------------------------------------------

IDENTIFIER_ALLOCATIONS = Counter(
    "identifier_allocations_total",
    "Project identifier allocations by outcome",
    ["outcome"],  # allocated|retried|exhausted|duplicate_singleton
)

DEPENDENCY_REJECTIONS = Counter(
    "dependency_rejections_total",
    "Writes rejected by the dependency validator",
    ["reason"],  # unknown_prerequisite|out_of_order_prerequisite|has_dependents
)

PROGRESS_TRANSITIONS = Counter(
    "progress_transitions_total",
    "Progress status transitions",
    ["from_status", "to_status"],
)

STORE_OPERATION_DURATION = Histogram(
    "store_operation_duration_seconds",
    "Duration of service calls against the store",
    ["kind"],  # query|analytics
    buckets=[0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0, 15.0],
)

STORE_TIMEOUTS = Counter(
    "store_timeouts_total",
    "Service calls that exceeded their timeout budget",
    ["kind"],
)
