"""
Data models for storage layer.

Defines the usage event recorded for every orchestrated request.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass(frozen=True)
class UsageEvent:
    """Immutable record of one orchestrated request.

    Produced exactly once per request, whether it was served from cache,
    completed upstream, or failed upstream (`error` set, zero cost).
    """
    timestamp: datetime
    provider: str
    model: str
    cache_hit: bool
    cost: float
    tokens: int
    original_model: Optional[str] = None
    recommendation_reason: Optional[str] = None
    savings: float = 0.0
    error: Optional[str] = None

    def __post_init__(self):
        """Validate figures are non-negative."""
        if self.cost < 0:
            raise ValueError("cost cannot be negative")
        if self.tokens < 0:
            raise ValueError("tokens cannot be negative")
        if self.savings < 0:
            raise ValueError("savings cannot be negative")
