"""
Model-family request normalization shared by the provider adapters.
"""

from typing import List, Optional

from ..models.request import Message

DEFAULT_TEMPERATURE = 0.7
REASONING_TEMPERATURE = 1.0


def is_reasoning_model(model_id: str) -> bool:
    """Reasoning-tier models take a fixed temperature and no system role."""
    return model_id == "o1" or model_id.startswith("o1-")


def clamp(value: float, low: float, high: float) -> float:
    return min(max(value, low), high)


def resolve_temperature(temperature: Optional[float], default: float = DEFAULT_TEMPERATURE) -> float:
    return default if temperature is None else temperature


def flatten_for_reasoning(messages: List[Message]) -> List[Message]:
    """
    Collapse a conversation into one user message.

    The content joins, separated by blank lines, the system prompt, the
    prior turns rendered as ``role: content``, and the final user prompt.
    Empty blocks are omitted.
    """
    system_prompt = "\n\n".join(m.content for m in messages if m.role == "system")
    turns = [m for m in messages if m.role != "system"]

    final_prompt = ""
    if turns and turns[-1].role == "user":
        final_prompt = turns[-1].content
        turns = turns[:-1]

    history = "\n\n".join(f"{m.role}: {m.content}" for m in turns)
    combined = "\n\n".join(block for block in (system_prompt, history, final_prompt) if block)
    return [Message(role="user", content=combined)]
