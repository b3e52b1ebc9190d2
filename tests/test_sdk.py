"""
Unit tests for the OpenAI upstream client.

Tests credential checks, parameter forwarding and error mapping.
"""

from unittest.mock import Mock, patch

import httpx
import openai
import pytest

from api_optimizer.core.errors import ConfigurationError, UpstreamError
from api_optimizer.core.token_counter import TokenUsage
from api_optimizer.sdk.openai_client import OpenAIUpstream

MESSAGES = [{"role": "user", "content": "Hello"}]
API_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def _mock_response(prompt_tokens=100, completion_tokens=50, content="Hi there"):
    response = Mock()
    response.id = "chat_123"
    response.model = "gpt-4"
    response.usage.prompt_tokens = prompt_tokens
    response.usage.completion_tokens = completion_tokens
    response.usage.total_tokens = prompt_tokens + completion_tokens
    response.choices = [Mock(message=Mock(content=content))]
    return response


class TestClientCreation:
    """Test lazy client creation and credential checks."""

    def test_missing_api_key(self, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY", raising=False)
        upstream = OpenAIUpstream()
        with pytest.raises(ConfigurationError, match="OPENAI_API_KEY"):
            upstream.invoke("openai", "gpt-4", MESSAGES)

    @pytest.mark.parametrize("placeholder", ["test", "your_openai_api_key_here", "  "])
    def test_placeholder_api_key(self, monkeypatch, placeholder):
        monkeypatch.setenv("OPENAI_API_KEY", placeholder)
        with pytest.raises(ConfigurationError):
            OpenAIUpstream().invoke("openai", "gpt-4", MESSAGES)

    @patch('api_optimizer.sdk.openai_client.OpenAI')
    def test_client_created_once_without_retries(self, mock_openai_class, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "sk-live")
        mock_openai_class.return_value.chat.completions.create.return_value = _mock_response()

        upstream = OpenAIUpstream(timeout=15.0)
        upstream.invoke("openai", "gpt-4", MESSAGES)
        upstream.invoke("openai", "gpt-4", MESSAGES)

        mock_openai_class.assert_called_once_with(api_key="sk-live", timeout=15.0, max_retries=0)

    @patch('api_optimizer.sdk.openai_client.OpenAI')
    def test_explicit_key_wins_over_environment(self, mock_openai_class, monkeypatch):
        monkeypatch.setenv("OPENAI_API_KEY", "test")
        mock_openai_class.return_value.chat.completions.create.return_value = _mock_response()

        OpenAIUpstream(api_key="sk-explicit").invoke("openai", "gpt-4", MESSAGES)

        assert mock_openai_class.call_args.kwargs["api_key"] == "sk-explicit"

    def test_invalid_timeout(self):
        with pytest.raises(ValueError, match="timeout"):
            OpenAIUpstream(timeout=0)

    def test_unsupported_provider(self):
        upstream = OpenAIUpstream(client=Mock())
        with pytest.raises(ConfigurationError, match="anthropic"):
            upstream.invoke("anthropic", "claude-3-opus", MESSAGES)


class TestInvoke:
    """Test successful calls."""

    def test_returns_completion_response(self):
        client = Mock()
        raw = _mock_response()
        client.chat.completions.create.return_value = raw

        response = OpenAIUpstream(client=client).invoke("openai", "gpt-4", MESSAGES)

        assert response.content == "Hi there"
        assert response.usage == TokenUsage(prompt_tokens=100, completion_tokens=50)
        assert response.usage.total_tokens == 150
        assert response.model == "gpt-4"
        assert response.response_id == "chat_123"
        assert response.raw is raw

    def test_unset_optional_parameters_are_not_sent(self):
        client = Mock()
        client.chat.completions.create.return_value = _mock_response()

        OpenAIUpstream(client=client).invoke("openai", "gpt-3.5-turbo", MESSAGES)

        client.chat.completions.create.assert_called_once_with(
            model="gpt-3.5-turbo",
            messages=MESSAGES,
        )

    def test_optional_parameters_are_forwarded(self):
        client = Mock()
        client.chat.completions.create.return_value = _mock_response()

        OpenAIUpstream(client=client).invoke(
            "openai", "gpt-4", MESSAGES, temperature=0.0, max_tokens=64
        )

        client.chat.completions.create.assert_called_once_with(
            model="gpt-4",
            messages=MESSAGES,
            temperature=0.0,
            max_tokens=64,
        )

    def test_empty_choices(self):
        client = Mock()
        raw = _mock_response()
        raw.choices = []
        client.chat.completions.create.return_value = raw

        response = OpenAIUpstream(client=client).invoke("openai", "gpt-4", MESSAGES)

        assert response.content is None


class TestErrorMapping:
    """Test SDK failures become UpstreamError."""

    def test_status_error_keeps_status_code(self):
        client = Mock()
        client.chat.completions.create.side_effect = openai.RateLimitError(
            "Rate limit reached",
            response=httpx.Response(429, request=API_REQUEST),
            body=None,
        )

        with pytest.raises(UpstreamError) as exc_info:
            OpenAIUpstream(client=client).invoke("openai", "gpt-4", MESSAGES)

        assert exc_info.value.status_code == 429
        assert exc_info.value.provider == "openai"
        assert "Rate limit" in exc_info.value.message

    def test_auth_error(self):
        client = Mock()
        client.chat.completions.create.side_effect = openai.AuthenticationError(
            "Incorrect API key provided",
            response=httpx.Response(401, request=API_REQUEST),
            body=None,
        )

        with pytest.raises(UpstreamError) as exc_info:
            OpenAIUpstream(client=client).invoke("openai", "gpt-4", MESSAGES)

        assert exc_info.value.status_code == 401

    def test_connection_error_has_no_status(self):
        client = Mock()
        client.chat.completions.create.side_effect = openai.APIConnectionError(request=API_REQUEST)

        with pytest.raises(UpstreamError) as exc_info:
            OpenAIUpstream(client=client).invoke("openai", "gpt-4", MESSAGES)

        assert exc_info.value.status_code is None

    def test_timeout_error(self):
        client = Mock()
        client.chat.completions.create.side_effect = openai.APITimeoutError(request=API_REQUEST)

        with pytest.raises(UpstreamError):
            OpenAIUpstream(client=client).invoke("openai", "gpt-4", MESSAGES)

    def test_missing_usage_is_malformed(self):
        client = Mock()
        raw = _mock_response()
        raw.usage = None
        client.chat.completions.create.return_value = raw

        with pytest.raises(UpstreamError, match="usage"):
            OpenAIUpstream(client=client).invoke("openai", "gpt-4", MESSAGES)

    def test_error_string_includes_status(self):
        assert str(UpstreamError("boom", status_code=500)) == "[500] boom"
        assert str(UpstreamError("boom")) == "boom"
