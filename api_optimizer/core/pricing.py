"""
Pricing calculations and model ladders.

Handles cost computations for the supported providers and the ordering of
their models from cheapest to most capable.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, Optional, Tuple

from .token_counter import TokenUsage


@dataclass(frozen=True)
class ModelPricing:
    """Per-token pricing for a specific model."""
    input_cost_per_1k: Decimal  # Cost per 1K input tokens
    output_cost_per_1k: Decimal  # Cost per 1K output tokens


@dataclass(frozen=True)
class ModelLadder:
    """Three model tiers of a provider, cheapest first."""
    cheapest: str
    balanced: str
    flagship: str

    @property
    def tiers(self) -> Tuple[str, str, str]:
        return (self.cheapest, self.balanced, self.flagship)


@dataclass(frozen=True)
class ProviderPricing:
    """Pricing and tier ordering for one provider."""
    ladder: ModelLadder
    prices: Dict[str, ModelPricing]


@dataclass(frozen=True)
class PricingTable:
    """Fixed pricing table for supported providers."""
    providers: Dict[str, ProviderPricing]

    def get_pricing(self, provider: str, model: str) -> Optional[ModelPricing]:
        """Get pricing for a model.

        Args:
            provider: Provider identifier
            model: Model identifier

        Returns:
            ModelPricing, or None if the provider/model is not priced
        """
        entry = self.providers.get(provider)
        if entry is None:
            return None
        return entry.prices.get(model)

    def get_ladder(self, provider: str) -> Optional[ModelLadder]:
        """Get the model ladder for a provider, or None if unknown."""
        entry = self.providers.get(provider)
        if entry is None:
            return None
        return entry.ladder


# Fixed pricing table (USD per 1K tokens) - no dynamic fetching
PRICING_TABLE = PricingTable({
    "openai": ProviderPricing(
        ladder=ModelLadder(
            cheapest="gpt-3.5-turbo",
            balanced="gpt-4-turbo",
            flagship="gpt-4",
        ),
        prices={
            "gpt-3.5-turbo": ModelPricing(
                input_cost_per_1k=Decimal("0.0005"),
                output_cost_per_1k=Decimal("0.0015")
            ),
            "gpt-4-turbo": ModelPricing(
                input_cost_per_1k=Decimal("0.01"),
                output_cost_per_1k=Decimal("0.03")
            ),
            "gpt-4": ModelPricing(
                input_cost_per_1k=Decimal("0.03"),
                output_cost_per_1k=Decimal("0.06")
            ),
        },
    ),
    "anthropic": ProviderPricing(
        ladder=ModelLadder(
            cheapest="claude-3-haiku",
            balanced="claude-3-sonnet",
            flagship="claude-3-opus",
        ),
        prices={
            "claude-3-haiku": ModelPricing(
                input_cost_per_1k=Decimal("0.00025"),
                output_cost_per_1k=Decimal("0.00125")
            ),
            "claude-3-sonnet": ModelPricing(
                input_cost_per_1k=Decimal("0.003"),
                output_cost_per_1k=Decimal("0.015")
            ),
            "claude-3-opus": ModelPricing(
                input_cost_per_1k=Decimal("0.015"),
                output_cost_per_1k=Decimal("0.075")
            ),
        },
    ),
})


def calculate_cost(
    provider: str,
    model: str,
    usage: TokenUsage,
    table: PricingTable = PRICING_TABLE,
) -> float:
    """Calculate total cost for model usage.

    An unpriced provider/model combination costs 0.0 rather than failing,
    so cost accounting can never block a completed request.

    Args:
        provider: Provider identifier
        model: Model actually used
        usage: Token usage reported by the provider
        table: Pricing table to use

    Returns:
        Total cost in dollars
    """
    pricing = table.get_pricing(provider, model)
    if pricing is None:
        return 0.0

    # (tokens / 1000) * cost_per_1k for each direction
    input_cost = (Decimal(usage.prompt_tokens) / Decimal("1000")) * pricing.input_cost_per_1k
    output_cost = (Decimal(usage.completion_tokens) / Decimal("1000")) * pricing.output_cost_per_1k

    return float(input_cost + output_cost)
