"""
Canonical event and usage models emitted by the completion gateway.
"""

from typing import Any, Dict, Union
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class UsageRecord(BaseModel):
    """Token counts as reported by the provider itself."""
    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


class _WireEvent(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> Dict[str, Any]:
        """Serialize with the camelCase field names callers expect."""
        return self.model_dump(by_alias=True)


class DeltaEvent(_WireEvent):
    """An incremental content fragment plus the running response."""
    content: str
    full_response: str
    response_time_ms: int


class FinalEvent(_WireEvent):
    """
    Terminal event carrying usage and cost.

    ``streamed`` is False when the completion was produced by a single
    non-streaming call; such events are returned as a plain JSON body.
    """
    content: str = ""
    full_response: str
    total_tokens: int = Field(ge=0)
    cost: float = Field(ge=0)
    response_time_ms: int
    done: bool = True
    streamed: bool = Field(default=True, exclude=True)


CompletionEvent = Union[DeltaEvent, FinalEvent]
