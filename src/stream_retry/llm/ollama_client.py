"""
Ollama client implementation for streaming chat completions.

Communicates with the Ollama API using httpx AsyncClient. Supports:
- Streaming chat (POST /api/chat, newline-delimited JSON)
- Reasoning ("thinking") fragments for models that emit them
- Connection pooling via a persistent client
- Errors carrying status code and headers for the retry wrapper
"""

import json
from typing import TYPE_CHECKING, Any, Dict, Optional, Sequence

import httpx
import structlog

from stream_retry.llm.base_client import BaseLLMClient
from stream_retry.llm.exceptions import (
    LLMClientError,
    LLMConnectionError,
    LLMGenerationError,
    LLMModelNotAvailableError,
    LLMRateLimitError,
    LLMTimeoutError,
)
from stream_retry.models.llm_models import (
    ApiStream,
    ChatMessage,
    ReasoningChunk,
    TextChunk,
    UsageChunk,
)
from stream_retry.monitoring.metrics import llm_tokens_total
from stream_retry.retry.options import RetryConfig

if TYPE_CHECKING:
    from stream_retry.config import Settings


logger = structlog.get_logger(__name__)


class OllamaClient(BaseLLMClient):
    """
    Ollama-specific streaming client using httpx.

    API Endpoints:
    - POST /api/chat: Streamed chat completion (one JSON object per line)

    Stream line format:
        {"model": "qwen2.5:7b", "message": {"role": "assistant", "content": "Hel"}, "done": false}
        ...
        {"model": "qwen2.5:7b", "message": {...}, "done": true,
         "prompt_eval_count": 26, "eval_count": 298}

    The client never retries on its own. Use stream_message() for retries.
    """

    def __init__(
        self,
        base_url: str = "http://ollama:11434",
        model: str = "qwen2.5:7b",
        timeout: int = 60,
        temperature: float = 0.0,
        max_tokens: int = 2048,
        connection_limits: Optional[httpx.Limits] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs
    ):
        """
        Initialize Ollama client.

        Args:
            base_url: Ollama server URL
            model: Model name (e.g., "qwen2.5:7b")
            timeout: Request timeout in seconds
            temperature: Sampling temperature
            max_tokens: Maximum tokens to generate (num_predict)
            connection_limits: httpx connection pool limits (default: 10 max connections)
            transport: Custom httpx transport (e.g. httpx.MockTransport in tests)
            **kwargs: Passed to BaseLLMClient (retry_config, clock, ...)
        """
        super().__init__(base_url, timeout, **kwargs)
        self.model = model
        self.temperature = temperature
        self.max_tokens = max_tokens

        if connection_limits is None:
            connection_limits = httpx.Limits(
                max_keepalive_connections=5,
                max_connections=10,
                keepalive_expiry=30.0
            )

        self._client: Optional[httpx.AsyncClient] = None
        self._connection_limits = connection_limits
        self._transport = transport

    @classmethod
    def from_settings(cls, settings: "Settings", **kwargs) -> "OllamaClient":
        """Build a client from application settings."""
        options = {
            "base_url": settings.OLLAMA_BASE_URL,
            "model": settings.OLLAMA_MODEL,
            "timeout": settings.OLLAMA_TIMEOUT,
            "temperature": settings.LLM_TEMPERATURE,
            "max_tokens": settings.LLM_MAX_TOKENS,
            "retry_config": RetryConfig.from_settings(settings),
        }
        options.update(kwargs)
        return cls(**options)

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.timeout),
                limits=self._connection_limits,
                transport=self._transport,
                follow_redirects=True
            )
            logger.debug("Created new httpx AsyncClient")
        return self._client

    def _build_payload(self, system_prompt: str, messages: Sequence[ChatMessage]) -> Dict[str, Any]:
        chat = [{"role": "system", "content": system_prompt}] if system_prompt else []
        chat.extend(message.model_dump() for message in messages)
        return {
            "model": self.model,
            "messages": chat,
            "stream": True,
            "options": {
                "temperature": self.temperature,
                "num_predict": self.max_tokens,
            },
        }

    def _status_error(self, response: httpx.Response) -> LLMClientError:
        """Map an HTTP error response to an LLMClientError subclass."""
        status_code = response.status_code
        headers = dict(response.headers)
        try:
            error_text = response.json().get("error", response.text)
        except (json.JSONDecodeError, AttributeError):
            error_text = response.text

        details = {"status": status_code, "error": error_text, "model": self.model}

        if status_code == 429:
            return LLMRateLimitError(
                f"Ollama rate limit exceeded: {error_text}",
                details=details,
                headers=headers,
            )
        if status_code == 404:
            return LLMModelNotAvailableError(
                f"Model not found: {self.model}",
                details=details,
                status_code=status_code,
                headers=headers,
            )
        return LLMGenerationError(
            f"Ollama HTTP error {status_code}: {error_text}",
            details=details,
            status_code=status_code,
            headers=headers,
        )

    async def create_message(
        self, system_prompt: str, messages: Sequence[ChatMessage]
    ) -> ApiStream:
        """
        Stream a chat completion from POST /api/chat.

        Yields:
            ReasoningChunk / TextChunk for each non-empty fragment, then one
            UsageChunk when the server reports done

        Raises:
            LLMRateLimitError: HTTP 429 (headers preserved)
            LLMModelNotAvailableError: HTTP 404
            LLMGenerationError: Other HTTP errors, error objects or invalid
                JSON in the stream
            LLMTimeoutError: Request timed out
            LLMConnectionError: Network failure, including mid-stream
        """
        payload = self._build_payload(system_prompt, messages)

        logger.info(
            "Starting Ollama chat stream",
            model=self.model,
            messages_count=len(payload["messages"]),
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

        client = await self._get_client()
        try:
            async with client.stream("POST", "/api/chat", json=payload) as response:
                if response.is_error:
                    await response.aread()
                    error = self._status_error(response)
                    logger.warning(
                        "Ollama HTTP error",
                        status_code=response.status_code,
                        error_type=type(error).__name__,
                    )
                    raise error

                async for line in response.aiter_lines():
                    if not line.strip():
                        continue
                    try:
                        data = json.loads(line)
                    except json.JSONDecodeError as e:
                        raise LLMGenerationError(
                            "Invalid JSON line in Ollama stream",
                            details={"parse_error": str(e), "line": line[:200]},
                        ) from e

                    if data.get("error"):
                        raise LLMGenerationError(
                            f"Ollama stream error: {data['error']}",
                            details={"error": data["error"], "model": self.model},
                        )

                    message = data.get("message") or {}
                    if message.get("thinking"):
                        yield ReasoningChunk(reasoning=message["thinking"])
                    if message.get("content"):
                        yield TextChunk(text=message["content"])

                    if data.get("done"):
                        prompt_tokens = data.get("prompt_eval_count") or 0
                        completion_tokens = data.get("eval_count") or 0
                        model_version = data.get("model", self.model)

                        llm_tokens_total.labels(model=model_version, token_type="prompt").inc(prompt_tokens)
                        llm_tokens_total.labels(model=model_version, token_type="completion").inc(completion_tokens)

                        logger.info(
                            "Ollama chat stream completed",
                            model=model_version,
                            prompt_tokens=prompt_tokens,
                            completion_tokens=completion_tokens,
                            done_reason=data.get("done_reason"),
                        )
                        yield UsageChunk(input_tokens=prompt_tokens, output_tokens=completion_tokens)
                        return

        except httpx.TimeoutException as e:
            logger.warning("Ollama request timeout", timeout=self.timeout, error=str(e))
            raise LLMTimeoutError(
                f"Request timeout after {self.timeout}s",
                details={"timeout": self.timeout},
            ) from e

        except (httpx.NetworkError, httpx.RemoteProtocolError) as e:
            logger.warning("Ollama network error", error=str(e), error_type=type(e).__name__)
            raise LLMConnectionError(
                f"Network error: {str(e)}",
                details={"error_type": type(e).__name__},
            ) from e

        # Server closed the stream without a done message
        raise LLMConnectionError(
            "Ollama stream ended before completion",
            details={"model": self.model},
        )

    async def close(self):
        """Close the HTTP client connection."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("Closed Ollama client connection")
