"""
Abstract base client for streaming LLM inference.

Defines the interface that all LLM client implementations (Ollama, etc.)
must adhere to. Clients are producers: each call to create_message starts a
fresh, independent stream. Retrying is layered on top by stream_message,
never implemented inside the clients themselves.
"""

from abc import ABC, abstractmethod
from typing import Optional, Sequence

import structlog

from stream_retry.models.llm_models import ApiStream, ChatMessage
from stream_retry.retry.clock import Clock
from stream_retry.retry.options import RetryConfig
from stream_retry.retry.wrapper import RetryCallback, retry_stream


logger = structlog.get_logger(__name__)


class BaseLLMClient(ABC):
    """
    Abstract base class for streaming LLM clients.

    Responsibilities:
    - Start a completion stream on the inference server
    - Translate the server's wire format into TextChunk/UsageChunk items
    - Raise LLMClientError subclasses carrying status code and headers

    Does NOT handle:
    - Retry/backoff (that's retry_stream's job, see stream_message)
    - Deduplicating content after a retry (callers reset on restart)
    """

    def __init__(
        self,
        base_url: str,
        timeout: int = 60,
        retry_config: Optional[RetryConfig] = None,
        clock: Optional[Clock] = None,
        **kwargs
    ):
        """
        Initialize base client.

        Args:
            base_url: Base URL of LLM inference server (e.g., http://ollama:11434)
            timeout: Request timeout in seconds
            retry_config: Retry options used by stream_message (default: RetryConfig())
            clock: Clock used for backoff (default: system clock)
            **kwargs: Additional provider-specific config
        """
        self.base_url = base_url.rstrip('/')
        self.timeout = timeout
        self.retry_config = retry_config or RetryConfig()
        self.clock = clock
        self.extra_config = kwargs

        logger.info(
            "Initialized LLM client",
            client_class=self.__class__.__name__,
            base_url=self.base_url,
            timeout=timeout,
            max_attempts=self.retry_config.max_attempts,
        )

    @abstractmethod
    def create_message(
        self, system_prompt: str, messages: Sequence[ChatMessage]
    ) -> ApiStream:
        """
        Start one completion stream.

        Implementations are async generators. Each call must start a new
        request; nothing is shared with earlier streams.

        Args:
            system_prompt: System instruction
            messages: Conversation so far

        Yields:
            TextChunk for each generated fragment, then one UsageChunk

        Raises:
            LLMRateLimitError: Server rate-limited the request (429)
            LLMConnectionError: Network/timeout errors
            LLMGenerationError: Server-side generation errors
        """
        ...

    def stream_message(
        self,
        system_prompt: str,
        messages: Sequence[ChatMessage],
        retry_config: Optional[RetryConfig] = None,
        on_retry: Optional[RetryCallback] = None,
    ) -> ApiStream:
        """
        Stream a completion, retrying transient failures.

        After a retry the stream restarts from the first chunk. Callers that
        render or accumulate text reset in on_retry.

        Args:
            system_prompt: System instruction
            messages: Conversation so far
            retry_config: Per-call override of the client's retry options
            on_retry: Called before each backoff sleep with the next attempt
                number, the delay in ms and the error

        Returns:
            Async iterator of chunks
        """
        return retry_stream(
            lambda: self.create_message(system_prompt, messages),
            retry_config or self.retry_config,
            clock=self.clock,
            on_retry=on_retry,
        )

    async def close(self):
        """
        Close client connections and cleanup resources.

        Default implementation does nothing. Subclasses should override if
        they hold persistent connections.
        """
        logger.debug("Closing LLM client", client_class=self.__class__.__name__)

    async def __aenter__(self):
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"base_url={self.base_url}, "
            f"timeout={self.timeout}s)"
        )
