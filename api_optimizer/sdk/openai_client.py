"""
OpenAI upstream client.

Performs the actual chat completion call for the orchestrator and maps
SDK failures onto UpstreamError / ConfigurationError.
"""

import os
from typing import Any, Dict, List, Optional

import openai
from openai import OpenAI

from ..core.errors import ConfigurationError, UpstreamError
from ..core.request import CompletionResponse
from ..core.token_counter import TokenUsage

PROVIDER = "openai"

# Values shipped in example .env files that must never reach the API
PLACEHOLDER_API_KEYS = {"your_openai_api_key_here", "test"}


class OpenAIUpstream:
    """Upstream provider backed by the OpenAI chat completions API.

    The SDK client is created lazily on first use, so a missing key only
    fails the requests that actually need the upstream.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        timeout: float = 60.0,
        client: Optional[Any] = None,
    ):
        """Initialize the upstream.

        Args:
            api_key: OpenAI API key (defaults to OPENAI_API_KEY)
            timeout: Per-request timeout in seconds
            client: Preconfigured client object (skips key checks)
        """
        if timeout <= 0:
            raise ValueError("timeout must be > 0")
        self.api_key = api_key
        self.timeout = timeout
        self._client = client

    @property
    def client(self) -> Any:
        """The SDK client, created on first access.

        Raises:
            ConfigurationError: If no usable API key is configured
        """
        if self._client is None:
            api_key = self.api_key or os.environ.get("OPENAI_API_KEY", "")
            if not api_key.strip() or api_key in PLACEHOLDER_API_KEYS:
                raise ConfigurationError(
                    "OPENAI_API_KEY not configured. Please set a valid API key."
                )
            # No retries here; callers own retry policy
            self._client = OpenAI(api_key=api_key, timeout=self.timeout, max_retries=0)
        return self._client

    def invoke(
        self,
        provider: str,
        model: str,
        messages: List[Dict[str, Optional[str]]],
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> CompletionResponse:
        """Create a chat completion.

        Args:
            provider: Provider identifier (only "openai" is served here)
            model: Model to call
            messages: Messages in wire shape
            temperature: Sampling temperature (optional)
            max_tokens: Maximum tokens to generate (optional)

        Returns:
            CompletionResponse wrapping the SDK response

        Raises:
            ConfigurationError: Unsupported provider or missing API key
            UpstreamError: The API call failed or returned no usage
        """
        if provider != PROVIDER:
            raise ConfigurationError(f"No upstream configured for provider: {provider}")

        params: Dict[str, Any] = {"model": model, "messages": messages}
        if temperature is not None:
            params["temperature"] = temperature
        if max_tokens is not None:
            params["max_tokens"] = max_tokens

        client = self.client
        try:
            response = client.chat.completions.create(**params)
        except openai.APIStatusError as e:
            raise UpstreamError(_error_message(e), status_code=e.status_code, provider=provider) from e
        except openai.APIConnectionError as e:
            # Includes APITimeoutError
            raise UpstreamError(_error_message(e), provider=provider) from e

        usage = getattr(response, "usage", None)
        if not usage:
            raise UpstreamError("OpenAI response missing usage information", provider=provider)

        choices = getattr(response, "choices", None) or []
        content = choices[0].message.content if choices else None

        return CompletionResponse(
            content=content,
            usage=TokenUsage(
                prompt_tokens=usage.prompt_tokens or 0,
                completion_tokens=usage.completion_tokens or 0,
            ),
            model=getattr(response, "model", None) or model,
            response_id=getattr(response, "id", None),
            raw=response,
        )


def _error_message(error: Exception) -> str:
    message = getattr(error, "message", None)
    return message or str(error) or error.__class__.__name__
