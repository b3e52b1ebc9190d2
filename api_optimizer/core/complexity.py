"""
Request complexity analysis.

Classifies a request as simple, medium or complex using cheap heuristics
on its messages. The thresholds are calibrated against the rough token
estimate in token_counter and must be kept in step with it.
"""

import json
from dataclasses import dataclass
from enum import Enum, auto

from .request import CompletionRequest
from .token_counter import estimate_tokens

CODE_FENCE = "```"

COMPLEX_TOKEN_THRESHOLD = 2000
COMPLEX_MESSAGE_THRESHOLD = 6
MEDIUM_TOKEN_THRESHOLD = 500
MEDIUM_MESSAGE_THRESHOLD = 3


class ComplexityLevel(Enum):
    """Complexity levels in order of required model capability."""
    SIMPLE = auto()
    MEDIUM = auto()
    COMPLEX = auto()

    def __lt__(self, other: "ComplexityLevel") -> bool:
        if not isinstance(other, ComplexityLevel):
            return NotImplemented
        return self.value < other.value

    def __le__(self, other: "ComplexityLevel") -> bool:
        if not isinstance(other, ComplexityLevel):
            return NotImplemented
        return self.value <= other.value

    @property
    def label(self) -> str:
        return self.name.lower()


@dataclass(frozen=True)
class ComplexityReport:
    """Result of analyzing a request."""
    level: ComplexityLevel
    estimated_tokens: int
    total_content_length: int
    contains_code_block: bool
    message_count: int


# Token thresholds apply to the message text including content, so long prompts count
def messages_text(request: CompletionRequest) -> str:
    """Textual representation of the full message list used for estimation."""
    return json.dumps(request.message_dicts(), separators=(",", ":"), ensure_ascii=False)


def analyze_complexity(request: CompletionRequest) -> ComplexityReport:
    """Analyze request complexity.

    Rules, in precedence order:
    - COMPLEX: fenced code block, or > 2000 estimated tokens, or > 6 messages
    - MEDIUM: > 500 estimated tokens, or > 3 messages
    - SIMPLE: everything else

    Args:
        request: Request to analyze

    Returns:
        ComplexityReport with the level and the figures it was derived from
    """
    messages = request.messages
    total_length = sum(len(m.content or "") for m in messages)
    estimated = estimate_tokens(messages_text(request))
    has_code = any(CODE_FENCE in (m.content or "") for m in messages)
    count = len(messages)

    if has_code or estimated > COMPLEX_TOKEN_THRESHOLD or count > COMPLEX_MESSAGE_THRESHOLD:
        level = ComplexityLevel.COMPLEX
    elif estimated > MEDIUM_TOKEN_THRESHOLD or count > MEDIUM_MESSAGE_THRESHOLD:
        level = ComplexityLevel.MEDIUM
    else:
        level = ComplexityLevel.SIMPLE

    return ComplexityReport(
        level=level,
        estimated_tokens=estimated,
        total_content_length=total_length,
        contains_code_block=has_code,
        message_count=count,
    )
