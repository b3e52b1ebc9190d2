"""
Unit tests for request validation at the boundary.
"""

import pytest

from api_optimizer.core.request import CompletionRequest, Message


class TestFromDict:
    """Test parsing of OpenAI-style bodies."""

    def test_valid_body(self):
        request = CompletionRequest.from_dict({
            "model": "gpt-4",
            "messages": [{"role": "user", "content": "hi"}],
            "temperature": 0.7,
            "max_tokens": 256,
        })
        assert request.provider == "openai"
        assert request.model == "gpt-4"
        assert request.messages == (Message("user", "hi"),)
        assert request.temperature == 0.7
        assert request.max_tokens == 256

    def test_optional_fields_default_to_none(self):
        request = CompletionRequest.from_dict({"model": "gpt-4", "messages": []})
        assert request.temperature is None
        assert request.max_tokens is None

    def test_message_dicts_round_trip_shape(self):
        body = {"model": "gpt-4", "messages": [{"role": "system", "content": "be brief"}]}
        request = CompletionRequest.from_dict(body)
        assert request.message_dicts() == body["messages"]

    @pytest.mark.parametrize("body, match", [
        ({"messages": []}, "model"),
        ({"model": "", "messages": []}, "model"),
        ({"model": "gpt-4"}, "messages"),
        ({"model": "gpt-4", "messages": "hi"}, "messages"),
        ({"model": "gpt-4", "messages": [{"content": "hi"}]}, "role"),
        ({"model": "gpt-4", "messages": ["hi"]}, "object"),
        ({"model": "gpt-4", "messages": [{"role": "user", "content": 5}]}, "content"),
        ({"model": "gpt-4", "messages": [], "temperature": "hot"}, "temperature"),
        ({"model": "gpt-4", "messages": [], "max_tokens": 0}, "max_tokens"),
        ({"model": "gpt-4", "messages": [], "max_tokens": 1.5}, "max_tokens"),
    ])
    def test_invalid_bodies(self, body, match):
        with pytest.raises(ValueError, match=match):
            CompletionRequest.from_dict(body)

    def test_non_mapping_body(self):
        with pytest.raises(ValueError, match="object"):
            CompletionRequest.from_dict(["gpt-4"])


class TestCompletionRequest:
    """Test direct construction."""

    def test_messages_are_normalized_to_tuple(self):
        request = CompletionRequest(provider="openai", model="gpt-4", messages=[Message("user", "hi")])
        assert isinstance(request.messages, tuple)

    def test_empty_provider_rejected(self):
        with pytest.raises(ValueError, match="provider"):
            CompletionRequest(provider=" ", model="gpt-4", messages=())

    def test_with_messages_returns_new_request(self):
        request = CompletionRequest(provider="openai", model="gpt-4", messages=(Message("user", "a"),))
        updated = request.with_messages([Message("user", "b")])
        assert updated.messages == (Message("user", "b"),)
        assert request.messages == (Message("user", "a"),)
