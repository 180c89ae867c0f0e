"""
Gateway data models.
"""

from .request import CompletionRequest, Message, Principal, DEFAULT_PRINCIPAL
from .response import CompletionEvent, DeltaEvent, FinalEvent, UsageRecord
from .registry import LatencyClass, ModelDescriptor, ModelListing, ProviderKind

__all__ = [
    "CompletionRequest",
    "Message",
    "Principal",
    "DEFAULT_PRINCIPAL",
    "CompletionEvent",
    "DeltaEvent",
    "FinalEvent",
    "UsageRecord",
    "LatencyClass",
    "ModelDescriptor",
    "ModelListing",
    "ProviderKind",
]
