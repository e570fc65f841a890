"""
Streaming LLM clients (producers for the retry wrapper).

Components:
- BaseLLMClient: Abstract base class for streaming LLM clients
- OllamaClient: Implementation for the Ollama chat API
- exceptions: LLM-specific exceptions carrying status code and headers
"""

from stream_retry.llm.base_client import BaseLLMClient
from stream_retry.llm.ollama_client import OllamaClient
from stream_retry.llm.exceptions import (
    LLMClientError,
    LLMConnectionError,
    LLMGenerationError,
    LLMRateLimitError,
    LLMTimeoutError,
    LLMModelNotAvailableError,
)

__all__ = [
    "BaseLLMClient",
    "OllamaClient",
    "LLMClientError",
    "LLMConnectionError",
    "LLMGenerationError",
    "LLMRateLimitError",
    "LLMTimeoutError",
    "LLMModelNotAvailableError",
]
