"""
Retry configuration.

This module defines the immutable RetryConfig that is supplied once per
wrapped call. A single instance can be shared by reference across any
number of concurrent wrapped calls.
"""

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from stream_retry.config import Settings

RateLimitClassifier = Callable[[BaseException], bool]

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY_MS = 1_000.0
DEFAULT_MAX_DELAY_MS = 10_000.0


@dataclass(frozen=True)
class RetryConfig:
    """
    Options for one wrapped streaming call.

    Attributes:
        max_attempts: Total attempts including the first (>= 1)
        base_delay_ms: Backoff unit for attempt 0, in milliseconds
        max_delay_ms: Upper clamp on exponential backoff, in milliseconds.
            A value below base_delay_ms is accepted and clamps every delay.
        retry_all_errors: When False, only rate-limit errors are retried
        rate_limit_classifiers: Extra predicates recognising
            provider-specific rate-limit errors
    """

    max_attempts: int = DEFAULT_MAX_ATTEMPTS
    base_delay_ms: float = DEFAULT_BASE_DELAY_MS
    max_delay_ms: float = DEFAULT_MAX_DELAY_MS
    retry_all_errors: bool = False
    rate_limit_classifiers: tuple[RateLimitClassifier, ...] = ()

    def __post_init__(self) -> None:
        """Validate config invariants."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

        if self.base_delay_ms < 0:
            raise ValueError("base_delay_ms must be >= 0")

        if self.max_delay_ms < 0:
            raise ValueError("max_delay_ms must be >= 0")

        if not isinstance(self.rate_limit_classifiers, tuple):
            object.__setattr__(self, "rate_limit_classifiers", tuple(self.rate_limit_classifiers))

    @classmethod
    def from_settings(cls, settings: "Settings") -> "RetryConfig":
        """Build a RetryConfig from application settings."""
        return cls(
            max_attempts=settings.RETRY_MAX_ATTEMPTS,
            base_delay_ms=settings.RETRY_BASE_DELAY_MS,
            max_delay_ms=settings.RETRY_MAX_DELAY_MS,
            retry_all_errors=settings.RETRY_ALL_ERRORS,
        )

    def with_overrides(self, **options: Any) -> "RetryConfig":
        """
        Return a copy with the given options applied over this config.

        Options set to None are ignored, so callers can forward optional
        keyword arguments without filtering them first.

        Raises:
            TypeError: Unknown option name
            ValueError: Resulting config is invalid
        """
        changes = {name: value for name, value in options.items() if value is not None}
        if not changes:
            return self
        return replace(self, **changes)
