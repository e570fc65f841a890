"""
Custom exceptions for the LLM client layer.

These exceptions provide structured error handling for LLM streaming
operations. Each error carries the HTTP status and response headers of the
failed call (when there was one), which is all the retry wrapper needs to
classify the failure and honour server retry hints.
"""

from collections.abc import Mapping
from typing import Optional


class LLMClientError(Exception):
    """
    Base exception for all LLM client errors.

    All LLM-specific exceptions inherit from this to allow catching
    any LLM-related error with a single except clause.

    Attributes:
        message: Human-readable error message
        details: Extra context for logging
        status_code: HTTP status of the failed call (None if not HTTP)
        headers: Response headers with lowercase names (empty if none)
    """
    def __init__(
        self,
        message: str,
        details: dict | None = None,
        status_code: Optional[int] = None,
        headers: Mapping[str, str] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.status_code = status_code
        self.headers = {key.lower(): value for key, value in (headers or {}).items()}


class LLMConnectionError(LLMClientError):
    """
    Raised when unable to connect to the LLM inference server.

    Includes network errors, DNS failures, connections dropped mid-stream.
    Retried only when the wrapper is configured with retry_all_errors.
    """
    pass


class LLMTimeoutError(LLMConnectionError):
    """
    Raised when the LLM server does not respond within the timeout.

    Separate from generic connection errors to allow specific handling.
    """
    pass


class LLMGenerationError(LLMClientError):
    """
    Raised when the LLM server returns an error during generation.

    Examples:
    - GPU out of memory
    - Invalid parameters
    - Error object emitted in the middle of a stream
    """
    pass


class LLMModelNotAvailableError(LLMGenerationError):
    """
    Raised when the requested model is not available on the server (404).
    """
    pass


class LLMRateLimitError(LLMClientError):
    """
    Raised when the LLM server rate-limits the request (HTTP 429).

    Carries the response headers so Retry-After / rate-limit reset hints
    can be honoured. status_code is never None (None becomes 429), so the
    retry policy always sees the rate-limit signal.
    """
    def __init__(
        self,
        message: str,
        details: dict | None = None,
        status_code: Optional[int] = 429,
        headers: Mapping[str, str] | None = None,
    ):
        super().__init__(message, details=details, status_code=status_code or 429, headers=headers)
