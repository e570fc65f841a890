"""
Unit tests for the retry policy (error classification and should_retry).
"""

from enum import Enum
from types import SimpleNamespace

import httpx
import pytest

from stream_retry.llm.exceptions import LLMConnectionError, LLMRateLimitError
from stream_retry.retry.classifier import (
    ClassifiedError,
    ErrorKind,
    classify_error,
    error_headers,
    error_status,
    find_retry_hint,
    is_rate_limited,
    should_retry,
)
from stream_retry.retry.options import RetryConfig


class StatusError(Exception):
    """Error exposing a `status` attribute (e.g. some SDK errors)."""

    def __init__(self, status):
        super().__init__(f"status {status}")
        self.status = status


class CodeError(Exception):
    """Error exposing a `code` attribute (e.g. gRPC-style errors)."""

    def __init__(self, code):
        super().__init__(f"code {code}")
        self.code = code


class GrpcStatus(Enum):
    RESOURCE_EXHAUSTED = (8, "resource exhausted")
    UNAVAILABLE = (14, "unavailable")


# ============================================================================
# error_status / error_headers
# ============================================================================


def test_error_status_from_status_code(api_error):
    assert error_status(api_error(429)) == 429


def test_error_status_from_status_attribute():
    assert error_status(StatusError(503)) == 503


def test_error_status_numeric_string_becomes_int():
    assert error_status(StatusError("429")) == 429


def test_error_status_from_code_enum_uses_name():
    assert error_status(CodeError(GrpcStatus.RESOURCE_EXHAUSTED)) == "RESOURCE_EXHAUSTED"


def test_error_status_from_response():
    response = httpx.Response(429, request=httpx.Request("POST", "http://test/api/chat"))
    error = httpx.HTTPStatusError("Too Many Requests", request=response.request, response=response)

    assert error_status(error) == 429


def test_error_status_missing():
    assert error_status(ValueError("boom")) is None


def test_error_headers_lowercases_keys(api_error):
    error = api_error(429, {"Retry-After": "5", "X-RateLimit-Reset": "10"})

    assert error_headers(error) == {"retry-after": "5", "x-ratelimit-reset": "10"}


def test_error_headers_from_response():
    response = httpx.Response(
        429,
        headers={"Retry-After": "7"},
        request=httpx.Request("POST", "http://test/api/chat"),
    )
    error = httpx.HTTPStatusError("Too Many Requests", request=response.request, response=response)

    assert error_headers(error)["retry-after"] == "7"


def test_error_headers_missing_or_not_a_mapping():
    assert error_headers(ValueError("boom")) == {}
    assert error_headers(SimpleNamespace(headers="retry-after: 5")) == {}  # type: ignore[arg-type]


# ============================================================================
# find_retry_hint
# ============================================================================


def test_find_retry_hint_priority_order():
    headers = {"ratelimit-reset": "3", "x-ratelimit-reset": "2", "retry-after": "1"}

    assert find_retry_hint(headers) == "1"


def test_find_retry_hint_falls_back_to_reset_headers():
    assert find_retry_hint({"x-ratelimit-reset": "2", "ratelimit-reset": "3"}) == "2"
    assert find_retry_hint({"ratelimit-reset": "3"}) == "3"


def test_find_retry_hint_skips_empty_values():
    assert find_retry_hint({"retry-after": "  ", "ratelimit-reset": "3"}) == "3"


def test_find_retry_hint_absent():
    assert find_retry_hint({"content-type": "application/json"}) is None


# ============================================================================
# Classification
# ============================================================================


def test_http_429_is_rate_limited(api_error):
    assert is_rate_limited(api_error(429), RetryConfig())


@pytest.mark.parametrize("status", [400, 401, 404, 500, 503, None])
def test_other_statuses_are_not_rate_limited(api_error, status):
    assert not is_rate_limited(api_error(status), RetryConfig())


@pytest.mark.parametrize(
    "code", ["RESOURCE_EXHAUSTED", "rate_limit_exceeded", "Too_Many_Requests", "rate_limited"]
)
def test_provider_rate_limit_codes_are_rate_limited(code):
    assert is_rate_limited(CodeError(code), RetryConfig())


def test_grpc_resource_exhausted_enum_is_rate_limited():
    assert is_rate_limited(CodeError(GrpcStatus.RESOURCE_EXHAUSTED), RetryConfig())
    assert not is_rate_limited(CodeError(GrpcStatus.UNAVAILABLE), RetryConfig())


def test_llm_rate_limit_error_is_rate_limited():
    assert is_rate_limited(LLMRateLimitError("slow down"), RetryConfig())


def test_llm_connection_error_is_not_rate_limited():
    assert not is_rate_limited(LLMConnectionError("reset by peer"), RetryConfig())


def test_custom_classifier_extends_rate_limit_detection():
    class QuotaError(Exception):
        pass

    config = RetryConfig(rate_limit_classifiers=(lambda e: isinstance(e, QuotaError),))

    assert is_rate_limited(QuotaError("quota"), config)
    assert not is_rate_limited(QuotaError("quota"), RetryConfig())


def test_classify_error_rate_limited_with_hint(api_error):
    error = api_error(429, {"Retry-After": "5"})

    classified = classify_error(error, RetryConfig())

    assert classified == ClassifiedError(kind=ErrorKind.RATE_LIMITED, status=429, retry_hint="5")
    assert classified.is_rate_limited


def test_classify_error_other():
    classified = classify_error(ValueError("boom"), RetryConfig())

    assert classified.kind is ErrorKind.OTHER
    assert classified.status is None
    assert classified.retry_hint is None
    assert not classified.is_rate_limited


# ============================================================================
# should_retry
# ============================================================================


@pytest.mark.parametrize("max_attempts", [2, 3, 5, 10])
def test_should_retry_rate_limited_before_last_attempt(api_error, max_attempts):
    config = RetryConfig(max_attempts=max_attempts)

    for attempt_index in range(max_attempts - 1):
        assert should_retry(api_error(429), attempt_index, config)


@pytest.mark.parametrize("max_attempts", [1, 2, 3, 5])
def test_should_retry_false_on_last_attempt(api_error, max_attempts):
    config = RetryConfig(max_attempts=max_attempts)
    last = max_attempts - 1

    assert not should_retry(api_error(429), last, config)
    assert not should_retry(ValueError("boom"), last, RetryConfig(max_attempts=max_attempts, retry_all_errors=True))


def test_should_retry_false_past_last_attempt(api_error):
    assert not should_retry(api_error(429), 7, RetryConfig(max_attempts=3))


@pytest.mark.parametrize("attempt_index", [0, 1, 2, 3])
def test_should_retry_other_error_never_retried_by_default(attempt_index):
    config = RetryConfig(max_attempts=5)

    assert not should_retry(ValueError("boom"), attempt_index, config)


def test_should_retry_other_error_with_retry_all_errors(api_error):
    config = RetryConfig(max_attempts=3, retry_all_errors=True)

    assert should_retry(ValueError("boom"), 0, config)
    assert should_retry(api_error(500), 1, config)
    assert not should_retry(api_error(500), 2, config)


def test_should_retry_single_attempt_never_retries(api_error):
    assert not should_retry(api_error(429), 0, RetryConfig(max_attempts=1))


def test_llm_rate_limit_error_without_status_is_still_rate_limited():
    error = LLMRateLimitError("slow down", status_code=None)

    assert error.status_code == 429
    assert classify_error(error, RetryConfig()).kind is ErrorKind.RATE_LIMITED


def test_rate_limit_error_code_is_rate_limited():
    assert is_rate_limited(CodeError("rate_limit_error"), RetryConfig())
