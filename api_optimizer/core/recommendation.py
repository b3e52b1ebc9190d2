"""
Model recommendation engine.

Maps a request's complexity onto a provider's model ladder and explains the
choice with a reason and an estimated dollar saving versus the requested
model.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional

from .complexity import ComplexityLevel, ComplexityReport, analyze_complexity
from .pricing import PRICING_TABLE, ModelLadder, PricingTable
from .request import CompletionRequest

FALLBACK_REASON = "fallback"
OUTPUT_ASSUMPTION = "savings estimate assumes output of half the input tokens"


@dataclass(frozen=True)
class Recommendation:
    """Model to use, why, and how much it is expected to save."""
    model: str
    reason: str
    estimated_savings: float = 0.0

    def __post_init__(self):
        if self.estimated_savings < 0:
            raise ValueError("estimated_savings cannot be negative")


def recommend_model(
    request: CompletionRequest,
    provider: str,
    requested_model: str,
    report: Optional[ComplexityReport] = None,
    table: PricingTable = PRICING_TABLE,
) -> Recommendation:
    """Recommend a model for a request.

    Decision table:
    - SIMPLE: cheapest tier (kept as-is if already requested)
    - MEDIUM: balanced tier
    - COMPLEX: flagship tier, no savings

    Never raises for an unknown provider; the requested model is returned
    with reason "fallback".

    Args:
        request: Request being routed
        provider: Provider identifier
        requested_model: Model the caller asked for
        report: Precomputed complexity report (computed if omitted)
        table: Pricing table holding the ladders

    Returns:
        Recommendation
    """
    ladder = table.get_ladder(provider)
    if ladder is None:
        return Recommendation(model=requested_model, reason=FALLBACK_REASON, estimated_savings=0.0)

    if report is None:
        report = analyze_complexity(request)
    level = report.level

    if level == ComplexityLevel.COMPLEX:
        return Recommendation(
            model=ladder.flagship,
            reason=f"Complex task needs {ladder.flagship}",
            estimated_savings=0.0,
        )

    if level == ComplexityLevel.SIMPLE:
        if requested_model == ladder.cheapest:
            return Recommendation(
                model=requested_model,
                reason=f"Simple task - {requested_model} is already the cheapest tier",
                estimated_savings=0.0,
            )
        model = ladder.cheapest
        reason = f"Simple task - {model} is sufficient"
    else:
        model = ladder.balanced
        reason = f"Medium complexity - {model} balances cost and quality"

    savings = _estimate_savings(
        provider, ladder, requested_model, model, report.estimated_tokens, table
    )
    if savings > 0:
        reason = f"{reason} ({OUTPUT_ASSUMPTION})"
    return Recommendation(model=model, reason=reason, estimated_savings=savings)


def _estimate_savings(
    provider: str,
    ladder: ModelLadder,
    requested_model: str,
    recommended_model: str,
    estimated_tokens: int,
    table: PricingTable,
) -> float:
    """Estimate savings of the recommended model over the requested one.

    Input volume is the analyzer's token estimate; output volume is assumed
    to be half of it since nothing has been generated yet. Unpriced
    requested models are compared against the flagship.
    """
    if recommended_model == requested_model:
        return 0.0

    baseline = table.get_pricing(provider, requested_model)
    if baseline is None:
        baseline = table.get_pricing(provider, ladder.flagship)
    chosen = table.get_pricing(provider, recommended_model)
    if baseline is None or chosen is None:
        return 0.0

    tokens = Decimal(estimated_tokens)
    input_savings = (baseline.input_cost_per_1k - chosen.input_cost_per_1k) * (tokens / Decimal("1000"))
    output_savings = (baseline.output_cost_per_1k - chosen.output_cost_per_1k) * (tokens / Decimal("2000"))

    return max(0.0, float(input_savings + output_savings))
