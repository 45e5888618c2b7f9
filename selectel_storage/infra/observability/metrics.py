from prometheus_client import Counter, Histogram

# operation is the client method name, never the object path, to keep cardinality low
REQUESTS = Counter(
    "storage_requests_total",
    "Total storage API requests",
    ["method", "operation", "status"],
)

LATENCY = Histogram(
    "storage_request_duration_seconds",
    "Storage API request latency in seconds",
    ["method", "operation"],
)
