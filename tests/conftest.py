"""Shared fixtures for the test suite."""

import pytest

from api_optimizer.core.request import CompletionRequest, Message


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock():
    return FakeClock()


def make_request(content="Hello, how are you?", model="gpt-4", provider="openai", **kwargs):
    """Build a single-message user request."""
    return CompletionRequest(
        provider=provider,
        model=model,
        messages=(Message(role="user", content=content),),
        **kwargs
    )
