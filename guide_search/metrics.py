"""
Prometheus metrics for the guide search service.

Tracks search operations, scoring failures, index builds and
interactive session transitions.
"""

from prometheus_client import Counter, Gauge, Histogram

# Request metrics
http_requests_total = Counter(
    "guide_search_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "guide_search_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
)

# Search metrics
search_queries_total = Counter(
    "guide_search_queries_total", "Total search queries", ["status"]
)

search_query_duration_seconds = Histogram(
    "guide_search_query_duration_seconds",
    "Search query duration in seconds",
    buckets=(0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 1.0),
)

search_results_per_query = Histogram(
    "guide_search_results_per_query",
    "Number of results returned per query",
    buckets=(0, 1, 2, 4, 8, 16, 32, 64),
)

search_scoring_failures_total = Counter(
    "guide_search_scoring_failures_total",
    "Guides skipped because scoring failed",
)

# Index metrics
search_index_builds_total = Counter(
    "guide_search_index_builds_total", "Total search index builds"
)

search_index_records = Gauge(
    "guide_search_index_records", "Number of guides in the search index"
)

# Session metrics
search_session_transitions_total = Counter(
    "guide_search_session_transitions_total",
    "Interactive search session phase transitions",
    ["phase"],
)
