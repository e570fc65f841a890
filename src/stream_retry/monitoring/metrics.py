"""Custom Prometheus metrics for Stream Retry.

These metrics are exposed by whatever process embeds the wrapper and should
be scraped by Prometheus. Alert rules should be configured for:
- stream_retries_total (high rate-limit retry rate indicates quota pressure)
- stream_retry_exhausted_total (streams failing after all attempts)
"""

from prometheus_client import Counter, Histogram

# === Attempt Metrics ===

stream_attempts_total = Counter(
    "stream_attempts_total",
    "Total producer attempts by outcome",
    ["outcome"],
)
"""
Producer attempts counter.

Labels:
- outcome: success (stream completed), retried (failed, retry scheduled),
  failed (failed, error propagated to the caller)
"""

# === Retry Metrics ===

stream_retries_total = Counter(
    "stream_retries_total",
    "Total delayed retries by error kind",
    ["kind"],
)
"""
Delayed retries counter.

Labels:
- kind: rate_limited (429 or provider rate-limit code), other (retry_all_errors)

Alert thresholds:
- WARN: rate_limited retries > 10% of attempts
- CRITICAL: rate_limited retries > 30% of attempts
"""

stream_retry_exhausted_total = Counter(
    "stream_retry_exhausted_total",
    "Streams that failed on their last permitted attempt",
    ["kind"],
)
"""
Exhausted streams counter.

Labels:
- kind: rate_limited, other
"""

stream_retry_delay_seconds = Histogram(
    "stream_retry_delay_seconds",
    "Backoff delay scheduled before a retry, in seconds",
    ["source"],
    buckets=[0.0, 0.5, 1.0, 2.0, 5.0, 10.0, 30.0, 60.0, 300.0],
)
"""
Backoff delay histogram.

Labels:
- source: hint (server retry hint), exponential (computed backoff)
"""

# === LLM Stream Metrics ===

llm_tokens_total = Counter(
    "llm_tokens_total",
    "Total tokens consumed by model and type",
    ["model", "token_type"],
)
"""
Token consumption counter, updated when a stream reports usage.

Labels:
- model: Model name
- token_type: prompt (input tokens), completion (output tokens)

Tokens of streams abandoned by a retry are not counted.
"""
