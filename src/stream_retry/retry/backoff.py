"""
Backoff delay calculation.

Computes how long to wait before the next attempt:
    1. Server retry hint (Retry-After, X-RateLimit-Reset, RateLimit-Reset),
       when present and parseable. Not clamped by max_delay_ms.
    2. Otherwise exponential backoff: min(max_delay_ms, base_delay_ms * 2^attempt)

A hint is ambiguous between delta-seconds and an absolute Unix timestamp.
A value greater than the current Unix time (in seconds) is taken as a
timestamp, anything else as delta-seconds. Values at or above
UNIX_TIMESTAMP_FLOOR are also taken as timestamps, so a reset time that has
already passed yields no delay. A very large delta-seconds value is
therefore read as a timestamp.

All durations are milliseconds.
"""

import math
from typing import Optional

import structlog

from stream_retry.retry.classifier import error_headers, find_retry_hint
from stream_retry.retry.clock import Clock, system_clock
from stream_retry.retry.options import RetryConfig

logger = structlog.get_logger(__name__)

# 2001-09-09T01:46:40Z. As delta-seconds this would be over 31 years.
UNIX_TIMESTAMP_FLOOR = 1_000_000_000


def exponential_delay(attempt_index: int, config: RetryConfig) -> float:
    """Exponential backoff for a zero-based attempt index, clamped to max_delay_ms."""
    try:
        delay = math.ldexp(config.base_delay_ms, attempt_index)
    except OverflowError:
        # base * 2**k is past the float range, so far beyond any max
        return config.max_delay_ms
    return min(config.max_delay_ms, delay)


def parse_retry_hint(value: Optional[str]) -> Optional[int]:
    """
    Parse a retry hint as an integer.

    Returns:
        Integer value, or None if the hint is missing or not an integer
        (e.g. an HTTP-date Retry-After)
    """
    if value is None:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


def hint_to_delay(hint: int, now_seconds: float) -> float:
    """
    Convert a parsed retry hint to a delay in milliseconds.

    Args:
        hint: Delta-seconds, or an absolute Unix timestamp in seconds
        now_seconds: Current Unix time in seconds

    Returns:
        Delay in milliseconds, never negative
    """
    if hint > now_seconds or hint >= UNIX_TIMESTAMP_FLOOR:
        delay_ms = hint * 1000 - now_seconds * 1000
    else:
        delay_ms = hint * 1000
    return max(0.0, float(delay_ms))


def compute_delay(
    error: BaseException,
    attempt_index: int,
    config: RetryConfig,
    clock: Optional[Clock] = None,
) -> float:
    """
    Compute the delay before retrying after `error`.

    Args:
        error: Error raised by the failed attempt
        attempt_index: Zero-based index of the failed attempt
        config: Retry config
        clock: Time source for absolute-timestamp hints (default: system clock)

    Returns:
        Delay in milliseconds (>= 0)
    """
    raw_hint = find_retry_hint(error_headers(error))
    hint = parse_retry_hint(raw_hint)

    if hint is None:
        if raw_hint is not None:
            logger.debug(
                "Ignoring unparsable retry hint, using exponential backoff",
                retry_hint=raw_hint,
                attempt_index=attempt_index,
            )
        return max(0.0, float(exponential_delay(attempt_index, config)))

    clock = clock or system_clock
    return hint_to_delay(hint, clock.time())
