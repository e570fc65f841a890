"""Data models for chat messages and streamed completion chunks."""

from stream_retry.models.llm_models import (
    ApiStream,
    ApiStreamChunk,
    ChatMessage,
    ReasoningChunk,
    TextChunk,
    UsageChunk,
)

__all__ = [
    "ApiStream",
    "ApiStreamChunk",
    "ChatMessage",
    "ReasoningChunk",
    "TextChunk",
    "UsageChunk",
]
