"""
Retry and backoff for incrementally-produced response streams.

This package wraps a producer of an async item stream so that transient
failures (chiefly rate limiting) are retried without the caller re-issuing
the request:

1. **Retry Policy Evaluator**: classify the error, decide whether to retry
2. **Backoff Delay Calculator**: exponential backoff or server retry hint
3. **Streaming Call Wrapper**: attempt loop that forwards items unbuffered

Main Components:
    - retry_stream / wrap_producer / with_retry: the streaming wrapper
    - RetryConfig: immutable per-call options
    - should_retry / classify_error: retry policy
    - compute_delay: backoff calculation
    - Clock / SystemClock: injectable time source and sleep

Usage:
    >>> from stream_retry.retry import RetryConfig, retry_stream
    >>> config = RetryConfig(max_attempts=5)
    >>> async for chunk in retry_stream(lambda: client.create_message(system, messages), config):
    ...     print(chunk)
"""

from stream_retry.retry.backoff import compute_delay, exponential_delay, parse_retry_hint
from stream_retry.retry.classifier import (
    RETRY_HINT_HEADERS,
    ClassifiedError,
    ErrorKind,
    classify_error,
    error_headers,
    error_status,
    is_rate_limited,
    should_retry,
)
from stream_retry.retry.clock import Clock, SystemClock
from stream_retry.retry.options import RetryConfig
from stream_retry.retry.wrapper import (
    AttemptState,
    ProducerFactory,
    RetryCallback,
    retry_stream,
    with_retry,
    wrap_producer,
)

__all__ = [
    "AttemptState",
    "ClassifiedError",
    "Clock",
    "ErrorKind",
    "ProducerFactory",
    "RETRY_HINT_HEADERS",
    "RetryCallback",
    "RetryConfig",
    "SystemClock",
    "classify_error",
    "compute_delay",
    "error_headers",
    "error_status",
    "exponential_delay",
    "is_rate_limited",
    "parse_retry_hint",
    "retry_stream",
    "should_retry",
    "with_retry",
    "wrap_producer",
]
