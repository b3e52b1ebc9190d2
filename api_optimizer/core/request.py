"""
Request and response types for the optimization pipeline.

Inbound bodies are validated once here; the rest of the pipeline works on
these immutable values and does not re-check field shapes.
"""

from dataclasses import dataclass, replace
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .token_counter import TokenUsage


@dataclass(frozen=True)
class Message:
    """Single chat message."""
    role: str
    content: Optional[str] = None

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {"role": self.role, "content": self.content}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], index: int = 0) -> "Message":
        """Build a message from a raw mapping.

        Raises:
            ValueError: If role is missing or content is not a string
        """
        if not isinstance(data, Mapping):
            raise ValueError(f"messages[{index}] must be an object")
        role = data.get("role")
        if not isinstance(role, str) or not role:
            raise ValueError(f"messages[{index}] is missing a role")
        content = data.get("content")
        if content is not None and not isinstance(content, str):
            raise ValueError(f"messages[{index}].content must be a string")
        return cls(role=role, content=content)


@dataclass(frozen=True)
class CompletionRequest:
    """Immutable chat completion request as seen by the orchestrator."""
    provider: str
    model: str
    messages: Tuple[Message, ...]
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None

    def __post_init__(self):
        """Validate fields and normalize messages to a tuple."""
        if not self.provider or not self.provider.strip():
            raise ValueError("provider is required and cannot be empty")
        if not self.model or not self.model.strip():
            raise ValueError("model is required and cannot be empty")
        if not isinstance(self.messages, tuple):
            object.__setattr__(self, "messages", tuple(self.messages))
        if self.temperature is not None:
            if isinstance(self.temperature, bool) or not isinstance(self.temperature, (int, float)):
                raise ValueError("temperature must be a number")
        if self.max_tokens is not None:
            if isinstance(self.max_tokens, bool) or not isinstance(self.max_tokens, int):
                raise ValueError("max_tokens must be an integer")
            if self.max_tokens <= 0:
                raise ValueError("max_tokens must be > 0")

    @classmethod
    def from_dict(cls, body: Mapping[str, Any], provider: str = "openai") -> "CompletionRequest":
        """Validate an OpenAI-style request body.

        Args:
            body: Request body with model, messages, temperature, max_tokens
            provider: Provider the request is addressed to

        Returns:
            Validated CompletionRequest

        Raises:
            ValueError: If the body is malformed
        """
        if not isinstance(body, Mapping):
            raise ValueError("request body must be an object")
        model = body.get("model")
        if not isinstance(model, str):
            raise ValueError("model is required and cannot be empty")
        raw_messages = body.get("messages")
        if not isinstance(raw_messages, list):
            raise ValueError("messages must be a list")
        messages = tuple(
            Message.from_dict(item, index) for index, item in enumerate(raw_messages)
        )
        return cls(
            provider=provider,
            model=model,
            messages=messages,
            temperature=body.get("temperature"),
            max_tokens=body.get("max_tokens"),
        )

    def message_dicts(self) -> List[Dict[str, Optional[str]]]:
        """Messages in the wire shape providers expect."""
        return [message.to_dict() for message in self.messages]

    def with_messages(self, messages: Sequence[Message]) -> "CompletionRequest":
        return replace(self, messages=tuple(messages))


@dataclass(frozen=True)
class CompletionResponse:
    """Completed upstream response.

    `raw` keeps the provider's own response object so callers can forward
    it unchanged.
    """
    content: Optional[str]
    usage: TokenUsage
    model: str
    response_id: Optional[str] = None
    raw: Any = None
