"""
Prometheus metrics
"""

from prometheus_client import Counter, Histogram

REQUEST_COUNT = Counter(
    "app_requests_total",
    "Total requests",
    ["method", "endpoint", "status"]
)
REQUEST_DURATION = Histogram(
    "app_request_duration_seconds",
    "Request duration",
    ["method", "endpoint"]
)

WEBHOOK_EVENTS = Counter(
    "webhook_events_total",
    "Gateway webhook deliveries by event kind and result",
    ["event", "result"]
)
WEBHOOK_PROCESSING_SECONDS = Histogram(
    "webhook_processing_seconds",
    "Time spent reconciling one webhook delivery",
    ["event"]
)
