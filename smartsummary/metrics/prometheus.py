"""Prometheus metrics - minimal implementation."""
from prometheus_client import Counter, Histogram

# Stream outcomes
requests_total = Counter(
    "smartsummary_requests_total",
    "Total summary streams",
    ["outcome"],
)

# Stream latency histogram
stream_latency_ms = Histogram(
    "smartsummary_stream_latency_ms",
    "Summary stream latency in milliseconds",
    ["outcome"],
    buckets=[100, 250, 500, 1000, 2000, 5000, 10000, 30000, 60000],
)

# Fallback decisions
fallbacks_total = Counter(
    "smartsummary_fallbacks_total",
    "Total fallbacks from primary to fallback provider",
    ["from_provider", "to_provider", "reason"],
)

# Upstream errors with detailed labels
upstream_errors_total = Counter(
    "smartsummary_upstream_errors_total",
    "Total upstream provider errors",
    ["provider", "error_code", "upstream_status"],
)

# Malformed upstream fragments (skipped, not fatal)
decode_errors_total = Counter(
    "smartsummary_decode_errors_total",
    "Total malformed upstream stream fragments skipped",
    ["provider"],
)

# Record store failures
persistence_errors_total = Counter(
    "smartsummary_persistence_errors_total",
    "Total request record persistence failures",
    ["operation"],
)

# LLM cost counter (cumulative)
llm_cost_usd_total = Counter(
    "smartsummary_llm_cost_usd_total",
    "Total LLM cost in USD (cumulative)",
    ["model"],
)

# Client disconnects mid-stream
client_disconnects_total = Counter(
    "smartsummary_client_disconnects_total",
    "Total streams cancelled by client disconnect",
)
