"""
Stream Retry: resilient wrappers for incrementally-produced LLM response streams.

Wraps any producer of an async item stream (e.g. a chat completion stream)
so that transient failures are retried transparently:
- Rate-limit classification (HTTP 429 and provider-specific codes)
- Exponential backoff with server retry hints (Retry-After, rate-limit reset)
- Immediate, unbuffered forwarding of streamed items

Architecture: pure retry policy + backoff calculator, async streaming wrapper,
httpx-based streaming LLM clients as producers.
"""

__version__ = "0.1.0"
