"""Monitoring and metrics instrumentation for the invocation layer.

Exports custom Prometheus metrics for operational monitoring and alerting.
"""

from invocation_layer.monitoring.metrics import (
    active_model_position,
    extraction_failures_total,
    invocation_attempts_total,
    invocations_exhausted_total,
    model_fallbacks_total,
    provider_latency_seconds,
    retry_backoff_seconds,
)

__all__ = [
    "invocation_attempts_total",
    "retry_backoff_seconds",
    "model_fallbacks_total",
    "invocations_exhausted_total",
    "active_model_position",
    "provider_latency_seconds",
    "extraction_failures_total",
]
