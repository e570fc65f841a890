"""
Streaming call wrapper with retry and backoff.

Drives the attempt loop around a producer factory: a zero-argument callable
that returns a fresh async iterator each time it is called. Items are
forwarded to the caller as soon as the producer yields them. When the
producer fails, the retry policy decides whether to try again, the backoff
calculator decides how long to wait, and the factory is invoked again.

Guarantees:
    - Items yielded before a failure are never replayed or retracted. After a
      retry the caller sees the new producer's sequence from its beginning.
    - Exactly one producer instance is active at a time. The previous one is
      released before the backoff sleep.
    - At most config.max_attempts attempts per wrapped call.
    - Terminal errors propagate unchanged (no wrapping, no translation).
    - Closing the returned iterator or cancelling the consumer, including
      during the backoff sleep, releases the producer and stops retrying.

Usage:
    >>> async for chunk in retry_stream(lambda: client.create_message(system, messages)):
    ...     handle(chunk)

    >>> class GeminiHandler(BaseLLMClient):
    ...     @with_retry(max_attempts=5)
    ...     async def create_message(self, system_prompt, messages):
    ...         ...
"""

import functools
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, Optional, TypeVar

import structlog

from stream_retry.monitoring.metrics import (
    stream_attempts_total,
    stream_retries_total,
    stream_retry_delay_seconds,
    stream_retry_exhausted_total,
)
from stream_retry.retry.backoff import compute_delay, parse_retry_hint
from stream_retry.retry.classifier import classify_error, should_retry
from stream_retry.retry.clock import Clock, system_clock
from stream_retry.retry.options import RetryConfig

logger = structlog.get_logger(__name__)

T = TypeVar("T")

ProducerFactory = Callable[[], AsyncIterator[T]]

# Called before each backoff sleep with (next attempt number, delay_ms, error)
RetryCallback = Callable[[int, float, Exception], None]

# Marks a factory/function whose streams are already retried
RETRY_CONFIG_ATTR = "__stream_retry_config__"


@dataclass(frozen=True)
class RetryBinding:
    """What a wrapped factory retries with. Rewrapping is a no-op only on an equal binding."""

    config: RetryConfig
    clock: Optional[Clock] = None
    on_retry: Optional[RetryCallback] = None


@dataclass
class AttemptState:
    """
    Mutable state of one wrapped call.

    Created when the wrapped stream starts iterating and discarded when it
    terminates. Never shared between calls.

    Attributes:
        attempt_index: Zero-based index of the current attempt
        retries: Delayed retries performed so far
        total_delay_ms: Backoff accumulated so far, in milliseconds
    """

    attempt_index: int = 0
    retries: int = 0
    total_delay_ms: float = 0.0


def is_retry_wrapped(
    producer: Callable[..., Any],
    config: RetryConfig,
    clock: Optional[Clock] = None,
    on_retry: Optional[RetryCallback] = None,
) -> bool:
    """Check whether `producer` already retries its streams with this config, clock and callback."""
    return getattr(producer, RETRY_CONFIG_ATTR, None) == RetryBinding(config, clock, on_retry)


async def _release(stream: AsyncIterator[Any]) -> None:
    """Close a producer instance if it supports it (async generators do)."""
    aclose = getattr(stream, "aclose", None)
    if aclose is not None:
        await aclose()


async def retry_stream(
    producer_factory: ProducerFactory[T],
    config: Optional[RetryConfig] = None,
    *,
    clock: Optional[Clock] = None,
    on_retry: Optional[RetryCallback] = None,
) -> AsyncIterator[T]:
    """
    Relay the producer's stream to the caller, retrying transient failures.

    Args:
        producer_factory: Zero-argument callable starting a fresh producer stream
        config: Retry config (default: RetryConfig())
        clock: Time source and sleep for backoff (default: system clock)
        on_retry: Called before each backoff sleep with the number of the
            next attempt, the delay in ms and the error. Incremental
            renderers use it to reset, since the restarted stream begins
            again from its first item.

    Yields:
        Items exactly as the active producer instance emits them

    Raises:
        Exception: The producer's own error, unchanged, when it is not
            retryable or the last permitted attempt failed
    """
    config = config or RetryConfig()

    if is_retry_wrapped(producer_factory, config, clock, on_retry):
        # Already retried with this binding: relay without a second attempt loop
        retried = producer_factory()
        try:
            async for item in retried:
                yield item
        finally:
            await _release(retried)
        return

    clock = clock or system_clock
    state = AttemptState()
    last_error: Optional[Exception] = None

    while state.attempt_index < config.max_attempts:
        stream: Optional[AsyncIterator[T]] = None
        failure: Optional[Exception] = None
        try:
            stream = producer_factory()
            async for item in stream:
                yield item
        except Exception as error:
            failure = error
        finally:
            if stream is not None:
                await _release(stream)

        if failure is None:
            stream_attempts_total.labels(outcome="success").inc()
            if state.retries:
                logger.info(
                    "Stream completed after retries",
                    attempts=state.attempt_index + 1,
                    retries=state.retries,
                    total_delay_ms=state.total_delay_ms,
                )
            return

        last_error = failure
        classified = classify_error(failure, config)

        if not should_retry(failure, state.attempt_index, config):
            stream_attempts_total.labels(outcome="failed").inc()
            if state.attempt_index >= config.max_attempts - 1:
                stream_retry_exhausted_total.labels(kind=classified.kind.value).inc()
                logger.error(
                    "Stream retries exhausted",
                    attempts=state.attempt_index + 1,
                    max_attempts=config.max_attempts,
                    retries=state.retries,
                    error_type=type(failure).__name__,
                    error_kind=classified.kind.value,
                    status=classified.status,
                )
            else:
                logger.info(
                    "Stream failed with non-retryable error",
                    attempt=state.attempt_index + 1,
                    error_type=type(failure).__name__,
                    error_kind=classified.kind.value,
                    status=classified.status,
                )
            raise failure

        delay_ms = compute_delay(failure, state.attempt_index, config, clock)
        source = "hint" if parse_retry_hint(classified.retry_hint) is not None else "exponential"

        stream_attempts_total.labels(outcome="retried").inc()
        stream_retries_total.labels(kind=classified.kind.value).inc()
        stream_retry_delay_seconds.labels(source=source).observe(delay_ms / 1000.0)

        logger.warning(
            f"Stream attempt {state.attempt_index + 1}/{config.max_attempts} failed, retrying",
            attempt=state.attempt_index + 1,
            max_attempts=config.max_attempts,
            delay_ms=delay_ms,
            delay_source=source,
            error_type=type(failure).__name__,
            error_kind=classified.kind.value,
            status=classified.status,
            retry_hint=classified.retry_hint,
        )

        if on_retry is not None:
            on_retry(state.attempt_index + 2, delay_ms, failure)

        await clock.sleep(delay_ms / 1000.0)

        state.retries += 1
        state.total_delay_ms += delay_ms
        state.attempt_index += 1

    # should_retry never allows attempt_index to reach max_attempts
    if last_error is not None:
        raise last_error


def wrap_producer(
    producer_factory: ProducerFactory[T],
    config: Optional[RetryConfig] = None,
    *,
    clock: Optional[Clock] = None,
    on_retry: Optional[RetryCallback] = None,
) -> ProducerFactory[T]:
    """
    Return a producer factory whose streams are retried.

    Wrapping a factory that is already wrapped with an equal config, the
    same clock and the same on_retry callback returns it unchanged, so
    attempts are never counted twice. A different clock or callback wraps
    again, and the two layers then count their attempts separately.

    Args:
        producer_factory: Zero-argument callable starting a fresh producer stream
        config: Retry config (default: RetryConfig())
        clock: Time source and sleep for backoff (default: system clock)
        on_retry: Called before each backoff sleep (see retry_stream)

    Returns:
        Zero-argument callable returning a retried stream
    """
    config = config or RetryConfig()
    if is_retry_wrapped(producer_factory, config, clock, on_retry):
        return producer_factory

    @functools.wraps(producer_factory)
    def retrying_factory() -> AsyncIterator[T]:
        return retry_stream(producer_factory, config, clock=clock, on_retry=on_retry)

    setattr(retrying_factory, RETRY_CONFIG_ATTR, RetryBinding(config, clock, on_retry))
    return retrying_factory


def with_retry(
    config: Optional[RetryConfig] = None,
    *,
    clock: Optional[Clock] = None,
    on_retry: Optional[RetryCallback] = None,
    **options: Any,
) -> Callable[[Callable[..., AsyncIterator[T]]], Callable[..., AsyncIterator[T]]]:
    """
    Decorate an async generator function (or method) with retry behaviour.

    Every call of the decorated function is an independent wrapped call: a
    retry re-invokes the original function with the same arguments.
    Decorating an already decorated function with an equal config, clock
    and callback is a no-op.

    Args:
        config: Base retry config (default: RetryConfig())
        clock: Time source and sleep for backoff (default: system clock)
        on_retry: Called before each backoff sleep (see retry_stream)
        **options: RetryConfig fields overriding `config`
            (max_attempts, base_delay_ms, max_delay_ms, retry_all_errors, ...)

    Returns:
        Decorator
    """
    retry_config = (config or RetryConfig()).with_overrides(**options)

    def decorator(func: Callable[..., AsyncIterator[T]]) -> Callable[..., AsyncIterator[T]]:
        if is_retry_wrapped(func, retry_config, clock, on_retry):
            return func

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> AsyncIterator[T]:
            return retry_stream(
                lambda: func(*args, **kwargs), retry_config, clock=clock, on_retry=on_retry
            )

        setattr(wrapper, RETRY_CONFIG_ATTR, RetryBinding(retry_config, clock, on_retry))
        return wrapper

    return decorator
