"""Shared test fixtures and configuration for all tests.

This conftest.py provides common fixtures used across unit and integration tests.
"""

import pytest

from stream_retry.config import Settings
from stream_retry.retry.options import RetryConfig

# Fixed "now" for simulated time: 2025-10-09T08:53:20Z
FAKE_NOW = 1_760_000_000.0


class FakeClock:
    """Deterministic clock: sleeping advances time instantly and is recorded."""

    def __init__(self, now: float = FAKE_NOW):
        self.now = now
        self.sleeps: list[float] = []

    def time(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with safe defaults for local testing.

    Override specific settings in individual tests as needed:
        def test_something(test_settings):
            test_settings.RETRY_MAX_ATTEMPTS = 5
    """
    return Settings(
        # === Application ===
        APP_NAME="Stream Retry (Test)",
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",

        # === Retry ===
        RETRY_MAX_ATTEMPTS=3,
        RETRY_BASE_DELAY_MS=1000.0,
        RETRY_MAX_DELAY_MS=10000.0,
        RETRY_ALL_ERRORS=False,

        # === Ollama ===
        OLLAMA_BASE_URL="http://localhost:11434",
        OLLAMA_MODEL="qwen2.5:7b",
        OLLAMA_TIMEOUT=60,

        PROMETHEUS_ENABLED=False,
    )


@pytest.fixture
def fake_clock() -> FakeClock:
    """Clock whose sleep() returns immediately and records the requested delay."""
    return FakeClock()


@pytest.fixture
def retry_config() -> RetryConfig:
    """Default retry config (3 attempts, 1s base, 10s max, rate limits only)."""
    return RetryConfig()
