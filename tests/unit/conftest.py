"""Unit test fixtures (mocks and stubs).

Provides scripted producers and fake API errors for testing the retry
wrapper without a real LLM server.
"""

from typing import Any, Optional

import pytest


class FakeAPIError(Exception):
    """Error shaped like an API client error: optional status code and headers."""

    def __init__(
        self,
        message: str = "API error",
        status_code: Optional[int] = None,
        headers: Optional[dict[str, str]] = None,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.headers = headers or {}


class ScriptedProducer:
    """
    Producer factory that replays one script per attempt.

    Each script is a tuple (items, error): the stream yields `items` and then
    raises `error` (or completes if error is None). The last script is reused
    once the list is exhausted.

    Attributes:
        calls: Number of times the factory was invoked
        closed: Number of stream instances that were finalised
        active: Number of stream instances currently open
        max_active: Highest number of simultaneously open instances
    """

    def __init__(self, *scripts: tuple[list[Any], Optional[BaseException]]):
        self.scripts = list(scripts)
        self.calls = 0
        self.closed = 0
        self.active = 0
        self.max_active = 0

    def __call__(self):
        script = self.scripts[min(self.calls, len(self.scripts) - 1)]
        self.calls += 1
        return self._run(*script)

    async def _run(self, items: list[Any], error: Optional[BaseException]):
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            for item in items:
                yield item
            if error is not None:
                raise error
        finally:
            self.active -= 1
            self.closed += 1


@pytest.fixture
def api_error():
    """Factory fixture to create API-shaped errors.

    Usage:
        def test_something(api_error):
            error = api_error(429, {"retry-after": "5"})
    """
    def _create(status_code: Optional[int] = 429, headers: Optional[dict[str, str]] = None) -> FakeAPIError:
        return FakeAPIError(f"HTTP {status_code}", status_code=status_code, headers=headers)

    return _create


@pytest.fixture
def scripted_producer():
    """Factory fixture to create ScriptedProducer instances.

    Usage:
        def test_something(scripted_producer):
            producer = scripted_producer((["a"], error), (["a", "b"], None))
    """
    return ScriptedProducer


async def collect(stream) -> list[Any]:
    """Drain an async iterator into a list."""
    return [item async for item in stream]


@pytest.fixture
def drain():
    """Coroutine function draining an async iterator into a list."""
    return collect
