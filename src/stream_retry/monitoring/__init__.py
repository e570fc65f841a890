"""Monitoring and metrics instrumentation for Stream Retry.

Exports custom Prometheus metrics for operational monitoring and alerting.
"""

from stream_retry.monitoring.metrics import (
    llm_tokens_total,
    stream_attempts_total,
    stream_retries_total,
    stream_retry_delay_seconds,
    stream_retry_exhausted_total,
)

__all__ = [
    "llm_tokens_total",
    "stream_attempts_total",
    "stream_retries_total",
    "stream_retry_exhausted_total",
    "stream_retry_delay_seconds",
]
