"""
Unit tests for Stream Retry.

Test individual components in isolation:
- Retry config (defaults, validation, settings bridge)
- Retry policy (classification, should_retry bounds)
- Backoff calculator (exponential, hints, clamping)
- Streaming wrapper (attempt loop, forwarding, cancellation, idempotence)
- Ollama streaming client (wire parsing, error mapping)
"""
