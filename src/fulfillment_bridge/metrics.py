from prometheus_client import Counter, Histogram

EVENTS_TOTAL = Counter(
    "webhook_events_total",
    "Total webhook deliveries received",
    ["result"],
)

PROCESSING_DURATION = Histogram(
    "webhook_processing_duration_seconds",
    "Downstream workflow duration in seconds",
    buckets=[0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0],
)

PROCESSING_ERRORS_TOTAL = Counter(
    "webhook_processing_errors_total",
    "Total number of deliveries whose downstream workflow failed",
)

ALERT_FAILURES_TOTAL = Counter(
    "webhook_alert_failures_total",
    "Total number of failure alerts that could not be delivered",
)
