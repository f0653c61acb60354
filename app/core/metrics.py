"""Prometheus metric inventory.

All metrics are declared here and imported by the modules that update
them.  The HTTP metrics are fed by MetricsMiddleware; the learning
metrics are updated by the progress, enrollment and certificate services.
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# ---------------------------------------------------------------------------
# HTTP
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
# Learning
# ---------------------------------------------------------------------------

PROGRESS_EVENTS = Counter(
    "progress_events_total",
    "Progress events handled, by event type and result",
    ["event_type", "result"],  # result: applied|invalid_reference|not_enrolled|conflict
)

LEDGER_CONFLICTS = Counter(
    "progress_ledger_conflicts_total",
    "Optimistic-concurrency conflicts while persisting a progress ledger",
)

ENROLLMENT_COMPLETIONS = Counter(
    "enrollment_completions_total",
    "Enrollments that transitioned from active to completed",
)

CERTIFICATE_REQUESTS = Counter(
    "certificate_requests_total",
    "Certificate issuance requests by outcome",
    ["outcome"],  # issued|existing|ineligible
)

CACHE_OPERATIONS = Counter(
    "cache_operations_total",
    "Cache operations by kind",
    ["operation"],  # hit|miss|set|delete
)
