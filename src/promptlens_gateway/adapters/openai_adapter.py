"""
OpenAI-shaped provider adapter.

Talks to the Chat Completions API. Reasoning-tier models get a fixed
temperature and a flattened single-message prompt, and a stream that
fails with "model not found" is retried once without streaming.
"""

import logging
from typing import Any, AsyncIterator, Dict, Optional, Type

import httpx

from ..core.errors import UpstreamError, UpstreamModelUnavailableError
from ..core.interface import Completion, PreparedCall, ProviderAdapter
from ..core.normalization import (
    REASONING_TEMPERATURE,
    clamp,
    flatten_for_reasoning,
    is_reasoning_model,
    resolve_temperature,
)
from ..models.registry import ModelDescriptor, ProviderKind
from ..models.request import CompletionRequest
from ..models.response import UsageRecord

logger = logging.getLogger(__name__)


class OpenAIAdapter(ProviderAdapter):
    """
    Direct OpenAI API adapter.

    Connects directly to OpenAI's API for chat completions.
    """

    DEFAULT_BASE_URL = "https://api.openai.com/v1"

    model_unavailable_error: Type[UpstreamError] = UpstreamModelUnavailableError

    def __init__(self, api_key: Optional[str], organization: Optional[str] = None, **kwargs):
        """
        Initialize OpenAI adapter.

        Args:
            api_key: OpenAI API key
            organization: OpenAI organization ID
            **kwargs: Passed to ProviderAdapter
        """
        super().__init__(api_key, **kwargs)
        self._organization = organization

    @property
    def provider(self) -> ProviderKind:
        return ProviderKind.OPENAI

    def _headers(self) -> Dict[str, str]:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self._api_key}",
        }
        if self._organization:
            headers["OpenAI-Organization"] = self._organization
        return headers

    def normalize_temperature(self, model_id: str, temperature: Optional[float]) -> float:
        if is_reasoning_model(model_id):
            return REASONING_TEMPERATURE

        value = resolve_temperature(temperature, self._default_temperature)
        if model_id.startswith("gpt-"):
            return clamp(value, 0.0, 2.0)
        return clamp(value, 0.0, 1.0)

    def prepare(self, request: CompletionRequest, model: ModelDescriptor) -> PreparedCall:
        messages = request.conversation()
        if is_reasoning_model(model.id):
            messages = flatten_for_reasoning(messages)

        return PreparedCall(
            path="/chat/completions",
            payload={
                "model": model.id,
                "messages": [m.model_dump() for m in messages],
                "temperature": self.normalize_temperature(model.id, request.temperature),
                "max_completion_tokens": model.max_output_tokens,
            },
        )

    def should_fall_back(self, error: UpstreamError) -> bool:
        return isinstance(error, UpstreamModelUnavailableError)

    async def iter_fragments(self, response: httpx.Response) -> AsyncIterator[str]:
        async for chunk in self._iter_data(response):
            choices = chunk.get("choices") or [{}]
            delta = choices[0].get("delta") or {}
            content = delta.get("content")
            if content:
                yield content

    def parse_completion(self, data: Dict[str, Any]) -> Completion:
        choices = data.get("choices") or [{}]
        message = choices[0].get("message") or {}
        usage = data.get("usage") or {}

        return Completion(
            text=message.get("content") or "",
            usage=UsageRecord(
                input_tokens=usage.get("prompt_tokens", 0),
                output_tokens=usage.get("completion_tokens", 0),
            ),
        )
