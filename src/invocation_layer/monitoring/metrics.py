"""Custom Prometheus metrics for the invocation layer.

These metrics are exposed at /metrics endpoint and should be scraped by Prometheus.
Alert rules should be configured for:
- invocations_exhausted_total (every backend spent its retry budget)
- model_fallbacks_total (primary tier unhealthy)
- active_model_position > 0 for a sustained period (running degraded)
"""

from prometheus_client import Counter, Gauge, Histogram

# === Attempt Metrics ===

invocation_attempts_total = Counter(
    "invocation_attempts_total",
    "Total provider call attempts by model and outcome",
    ["model", "outcome"],
)
"""
Attempt counter.

Labels:
- model: Backend identifier (e.g. gemini-2.5-pro)
- outcome: success, retryable, fatal
"""

retry_backoff_seconds = Histogram(
    "retry_backoff_seconds",
    "Backoff delay applied before retrying the same backend",
    buckets=[0.5, 1.0, 2.0, 4.0, 8.0, 16.0, 30.0, 40.0],
)

# === Fallback Metrics ===

model_fallbacks_total = Counter(
    "model_fallbacks_total",
    "Chain advances from one backend to the next",
    ["from_model", "to_model"],
)
"""
Fallback counter.

Alert thresholds:
- WARN: any fallback away from the primary within 15 minutes
"""

invocations_exhausted_total = Counter(
    "invocations_exhausted_total",
    "Operations that failed after every backend exhausted its retry budget",
    ["operation"],
)

active_model_position = Gauge(
    "active_model_position",
    "Cursor position in the model chain (0 = primary)",
)

# === Provider Performance Metrics ===

provider_latency_seconds = Histogram(
    "provider_latency_seconds",
    "Provider call latency in seconds",
    ["model", "success"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 120.0],
)
"""
Provider latency histogram.

Buckets cover multimodal generation (0.5s to 120s).

Alert thresholds:
- WARN: p95 > 30s
"""

# === Extraction Metrics ===

extraction_failures_total = Counter(
    "extraction_failures_total",
    "Structured payload extraction failures by reason",
    ["reason"],
)
"""
Labels:
- reason: empty_content, no_payload, not_json_object
"""
