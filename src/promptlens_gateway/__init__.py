"""
PromptLens Gateway

A unified streaming completion gateway for OpenAI- and Anthropic-shaped
providers:
- One canonical request and event stream for every provider
- Usage and cost accounting from the provider's own token counts
- A model registry evolved through versioned migrations
"""

from .core.gateway import CompletionGateway, CompletionRun, CompletionState
from .core.config import GatewaySettings, load_settings
from .models.request import CompletionRequest, Message, Principal
from .models.response import DeltaEvent, FinalEvent, UsageRecord
from .models.registry import ModelDescriptor, ProviderKind
from .migrations import MigrationManager

__all__ = [
    "CompletionGateway",
    "CompletionRun",
    "CompletionState",
    "GatewaySettings",
    "load_settings",
    "CompletionRequest",
    "Message",
    "Principal",
    "DeltaEvent",
    "FinalEvent",
    "UsageRecord",
    "ModelDescriptor",
    "ProviderKind",
    "MigrationManager",
]
