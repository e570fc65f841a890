"""
Integration tests for Stream Retry.

Test components together or against real external services:
- Retry wrapper + Ollama client over a scripted HTTP transport
- Retry wrapper + real Ollama server (skipped when not reachable)
"""
