"""
Provider adapters.
"""

from ..core.registry import AdapterRegistry
from ..models.registry import ProviderKind
from .openai_adapter import OpenAIAdapter
from .anthropic_adapter import AnthropicAdapter


def default_adapter_registry() -> AdapterRegistry:
    """Registry with an adapter for every ProviderKind."""
    registry = AdapterRegistry()
    registry.register_adapter(ProviderKind.OPENAI, OpenAIAdapter)
    registry.register_adapter(ProviderKind.ANTHROPIC, AnthropicAdapter)
    return registry


__all__ = [
    "OpenAIAdapter",
    "AnthropicAdapter",
    "default_adapter_registry",
]
