"""
Token counting and usage tracking.

Holds exact token usage reported by providers and the rough estimate used
before a call is made.
"""

import math
from dataclasses import dataclass

# Rough estimate: ~4 characters per token
CHARS_PER_TOKEN = 4


@dataclass(frozen=True)
class TokenUsage:
    """Token usage data for cost calculation.

    Contains exact token counts as reported by the provider.
    """
    prompt_tokens: int
    completion_tokens: int

    @property
    def total_tokens(self) -> int:
        """Total tokens used (prompt + completion)."""
        return self.prompt_tokens + self.completion_tokens


def estimate_tokens(text: str) -> int:
    """Estimate token count for text.

    This is deliberately approximate. Complexity thresholds are calibrated
    against it, so it must stay a plain character ratio.

    Args:
        text: Text to estimate

    Returns:
        ceil(len(text) / 4)
    """
    return math.ceil(len(text) / CHARS_PER_TOKEN)
