"""
Retry policy evaluation.

Classifies an error raised by a producer as rate-limited or other, and
decides whether another attempt is warranted. Everything here is pure:
no I/O, no logging, no shared state.

Errors are inspected structurally (duck typing), so exceptions from any
client library work as long as they expose a status and/or headers:
    - status: error.status_code, error.status, error.code,
      or error.response.status_code
    - headers: error.headers or error.response.headers
"""

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional, Union

from stream_retry.retry.options import RetryConfig

StatusSignal = Union[int, str]

TOO_MANY_REQUESTS = 429

# Provider-specific "too many requests" codes (gRPC, OpenAI, Anthropic, ...)
RATE_LIMIT_CODES = frozenset(
    {
        "RESOURCE_EXHAUSTED",
        "TOO_MANY_REQUESTS",
        "RATE_LIMIT_EXCEEDED",
        "RATE_LIMITED",
        "RATE_LIMIT_ERROR",
    }
)

# Server retry hints, highest priority first
RETRY_HINT_HEADERS = ("retry-after", "x-ratelimit-reset", "ratelimit-reset")


class ErrorKind(str, Enum):
    """Retry-relevant error classification."""

    RATE_LIMITED = "rate_limited"
    OTHER = "other"


@dataclass(frozen=True)
class ClassifiedError:
    """
    Retry-relevant view of a producer error.

    Attributes:
        kind: RATE_LIMITED or OTHER
        status: Status signal found on the error (None if absent)
        retry_hint: Raw value of the first present retry-hint field
    """

    kind: ErrorKind
    status: Optional[StatusSignal] = None
    retry_hint: Optional[str] = None

    @property
    def is_rate_limited(self) -> bool:
        return self.kind is ErrorKind.RATE_LIMITED


def _coerce_status(value: Any) -> Optional[StatusSignal]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, Enum):
        # e.g. grpc.StatusCode.RESOURCE_EXHAUSTED
        return value.name
    if isinstance(value, str):
        text = value.strip()
        if text.isdigit():
            return int(text)
        return text or None
    return None


def error_status(error: BaseException) -> Optional[StatusSignal]:
    """
    Extract a status signal from an error.

    Checks error.status_code, error.status, error.code and finally
    error.response.status_code. Numeric strings are returned as int.

    Returns:
        int or str status, or None if the error carries no status
    """
    for attr in ("status_code", "status", "code"):
        status = _coerce_status(getattr(error, attr, None))
        if status is not None:
            return status

    response = getattr(error, "response", None)
    if response is not None:
        return _coerce_status(getattr(response, "status_code", None))
    return None


def error_headers(error: BaseException) -> dict[str, str]:
    """
    Extract header-like metadata from an error, with lowercase keys.

    Returns:
        Header mapping (empty if the error carries none)
    """
    headers = getattr(error, "headers", None)
    if not isinstance(headers, Mapping):
        response = getattr(error, "response", None)
        headers = getattr(response, "headers", None) if response is not None else None
    if not isinstance(headers, Mapping):
        return {}
    return {str(key).lower(): str(value) for key, value in headers.items() if value is not None}


def find_retry_hint(headers: Mapping[str, str]) -> Optional[str]:
    """
    Return the first present, non-empty retry hint in priority order.

    Args:
        headers: Header mapping with lowercase keys

    Returns:
        Raw hint value, or None if no hint field is present
    """
    for name in RETRY_HINT_HEADERS:
        value = headers.get(name)
        if value is not None and value.strip():
            return value
    return None


def is_rate_limited(error: BaseException, config: RetryConfig) -> bool:
    """Check whether an error carries a "too many requests" signal."""
    status = error_status(error)
    if status == TOO_MANY_REQUESTS:
        return True
    if isinstance(status, str) and status.upper() in RATE_LIMIT_CODES:
        return True
    return any(classifier(error) for classifier in config.rate_limit_classifiers)


def classify_error(error: BaseException, config: RetryConfig) -> ClassifiedError:
    """
    Classify a producer error for retry purposes.

    Args:
        error: Error raised by the producer
        config: Retry config (for provider-specific classifiers)

    Returns:
        ClassifiedError with kind, status and raw retry hint
    """
    kind = ErrorKind.RATE_LIMITED if is_rate_limited(error, config) else ErrorKind.OTHER
    return ClassifiedError(
        kind=kind,
        status=error_status(error),
        retry_hint=find_retry_hint(error_headers(error)),
    )


def should_retry(error: BaseException, attempt_index: int, config: RetryConfig) -> bool:
    """
    Decide whether another attempt is warranted.

    Args:
        error: Error raised by the producer on attempt `attempt_index`
        attempt_index: Zero-based index of the attempt that failed
        config: Retry config

    Returns:
        True only if the error is retryable (rate-limited, or any error under
        retry_all_errors) and attempt_index < max_attempts - 1
    """
    if attempt_index >= config.max_attempts - 1:
        return False
    if config.retry_all_errors:
        return True
    return is_rate_limited(error, config)
