"""
Canonical request models for the completion gateway.
"""

from dataclasses import dataclass
from typing import Optional, List, Literal
from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True)
class Principal:
    """Caller context threaded through every store and gateway call."""
    user_id: int = 1


DEFAULT_PRINCIPAL = Principal()


class Message(BaseModel):
    """A single conversation turn."""
    role: Literal["system", "user", "assistant"]
    content: str


class CompletionRequest(BaseModel):
    """
    Unified completion request.

    ``system_prompt`` is an optional, separately supplied system prompt.
    It is only used when ``messages`` carries no system message.
    """
    model_config = ConfigDict(populate_by_name=True)

    model: str = Field(..., min_length=1, description="Registry model id")
    messages: List[Message] = Field(..., min_length=1, description="Conversation messages")
    temperature: Optional[float] = Field(default=None)
    stream: bool = Field(default=True)
    system_prompt: Optional[str] = Field(default=None, alias="systemPrompt")

    def conversation(self) -> List[Message]:
        """Messages with the separate system prompt injected at most once."""
        messages = list(self.messages)
        if self.system_prompt and not any(m.role == "system" for m in messages):
            messages.insert(0, Message(role="system", content=self.system_prompt))
        return messages
