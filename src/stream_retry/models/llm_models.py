"""
LLM-specific data models for the streaming request/response cycle.

A chat completion is streamed as a sequence of typed chunks. The retry
wrapper treats chunks as opaque; these models exist for the producers
(LLM clients) and for callers that consume the stream.
"""

from typing import Annotated, AsyncIterator, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ChatMessage(BaseModel):
    """One message of a conversation sent to the model."""
    model_config = ConfigDict(frozen=True)

    role: Literal["system", "user", "assistant"] = Field(..., description="Message author")
    content: str = Field(..., description="Message text")


class TextChunk(BaseModel):
    """Fragment of generated text."""
    model_config = ConfigDict(frozen=True)

    type: Literal["text"] = "text"
    text: str


class ReasoningChunk(BaseModel):
    """Fragment of model reasoning, for models that expose it."""
    model_config = ConfigDict(frozen=True)

    type: Literal["reasoning"] = "reasoning"
    reasoning: str


class UsageChunk(BaseModel):
    """
    Token usage for the whole completion.

    Emitted once, after the last text chunk.
    """
    model_config = ConfigDict(frozen=True)

    type: Literal["usage"] = "usage"
    input_tokens: int = Field(..., ge=0, description="Tokens in the prompt")
    output_tokens: int = Field(..., ge=0, description="Tokens generated")
    cache_write_tokens: Optional[int] = Field(default=None, ge=0)
    cache_read_tokens: Optional[int] = Field(default=None, ge=0)
    total_cost: Optional[float] = Field(default=None, ge=0.0, description="Provider-reported cost")


ApiStreamChunk = Annotated[
    Union[TextChunk, ReasoningChunk, UsageChunk],
    Field(discriminator="type"),
]

ApiStream = AsyncIterator[ApiStreamChunk]
