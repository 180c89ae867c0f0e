"""
Cost computation from provider-reported usage and registry pricing.
"""

from ..models.registry import ModelDescriptor
from ..models.response import UsageRecord

TOKENS_PER_PRICING_UNIT = 1_000_000


def calculate_cost(usage: UsageRecord, model: ModelDescriptor) -> float:
    """
    Calculate the cost of a completion.

    Args:
        usage: Token counts from the provider
        model: Registry descriptor carrying per-million-token prices

    Returns:
        Cost in the registry's currency
    """
    return (
        usage.input_tokens * model.input_cost_per_1m
        + usage.output_tokens * model.output_cost_per_1m
    ) / TOKENS_PER_PRICING_UNIT
