"""
Model registry data models.
"""

from enum import Enum
from pydantic import BaseModel, ConfigDict, Field


class ProviderKind(str, Enum):
    """Providers with a registered adapter."""
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class LatencyClass(str, Enum):
    """Relative latency, fastest first."""
    FASTEST = "Fastest"
    FAST = "Fast"
    MODERATE = "Moderate"
    SLOW = "Slow"


class ModelDescriptor(BaseModel):
    """Capability and pricing facts for one model, as installed by migrations."""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    provider: str
    multilingual: bool = False
    vision: bool = False
    message_batches: bool = False
    context_window: int = Field(gt=0)
    max_output_tokens: int = Field(gt=0)
    input_cost_per_1m: float = Field(ge=0)
    output_cost_per_1m: float = Field(ge=0)
    latency: LatencyClass


class ModelListing(ModelDescriptor):
    """Descriptor plus the principal's favorite flag, for the read API."""
    is_favorite: bool = Field(default=False, serialization_alias="isFavorite")
