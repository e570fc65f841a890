"""Integration test fixtures (service checks and prerequisites).

Provides fixtures for checking if external services are available.
Integration tests are skipped if required services are not running.
"""

import httpx
import pytest


@pytest.fixture(scope="session")
def check_ollama():
    """Check if Ollama is available at localhost:11434.

    Skips tests if Ollama is not reachable.
    """
    try:
        response = httpx.get("http://localhost:11434/api/tags", timeout=5)
        if response.status_code != 200:
            pytest.skip("Ollama not available (non-200 status)")
    except httpx.HTTPError as e:
        pytest.skip(f"Ollama not available: {e}")


@pytest.fixture
def integration_settings(test_settings):
    """Settings for integration tests with real services.

    Points to localhost services on standard ports.
    """
    test_settings.OLLAMA_BASE_URL = "http://localhost:11434"
    test_settings.OLLAMA_MODEL = "qwen2.5:7b"
    test_settings.RETRY_BASE_DELAY_MS = 100.0
    test_settings.PROMETHEUS_ENABLED = False

    return test_settings


@pytest.fixture
def real_ollama_client(check_ollama, integration_settings):
    """Real OllamaClient instance for integration tests.

    Requires Ollama to be running (checked by check_ollama fixture).
    """
    from stream_retry.llm.ollama_client import OllamaClient

    return OllamaClient.from_settings(integration_settings)
