"""
Anthropic-shaped provider adapter.

Provides direct access to Anthropic's Messages API.
"""

import logging
from typing import Any, AsyncIterator, Dict, Optional

import httpx

from ..core.errors import UpstreamRejectedError, UpstreamTransientError
from ..core.interface import Completion, PreparedCall, ProviderAdapter
from ..core.normalization import clamp, resolve_temperature
from ..models.registry import ModelDescriptor, ProviderKind
from ..models.request import CompletionRequest
from ..models.response import UsageRecord

logger = logging.getLogger(__name__)


class AnthropicAdapter(ProviderAdapter):
    """
    Direct Anthropic API adapter.

    A missing model is reported as a plain transient failure; this adapter
    has no non-streaming fallback.
    """

    DEFAULT_BASE_URL = "https://api.anthropic.com/v1"
    ANTHROPIC_VERSION = "2023-06-01"

    @property
    def provider(self) -> ProviderKind:
        return ProviderKind.ANTHROPIC

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "x-api-key": self._api_key,
            "anthropic-version": self.ANTHROPIC_VERSION,
        }

    def normalize_temperature(self, model_id: str, temperature: Optional[float]) -> float:
        return clamp(resolve_temperature(temperature, self._default_temperature), 0.0, 1.0)

    def prepare(self, request: CompletionRequest, model: ModelDescriptor) -> PreparedCall:
        # Extract system message
        system = None
        messages = []

        for m in request.conversation():
            if m.role == "system":
                if system is None:
                    system = m.content
            else:
                messages.append({"role": m.role, "content": m.content})

        data = {
            "model": model.id,
            "messages": messages,
            "max_tokens": model.max_output_tokens,
            "temperature": self.normalize_temperature(model.id, request.temperature),
        }

        if system:
            data["system"] = system

        return PreparedCall(path="/messages", payload=data)

    async def iter_fragments(self, response: httpx.Response) -> AsyncIterator[str]:
        async for event in self._iter_data(response):
            event_type = event.get("type")

            if event_type == "content_block_delta":
                delta = event.get("delta") or {}
                if "text" in delta:
                    yield delta["text"]

            elif event_type == "error":
                error = event.get("error") or {}
                message = error.get("message", "Stream error")
                error_cls = (
                    UpstreamTransientError
                    if error.get("type") in ("overloaded_error", "api_error")
                    else UpstreamRejectedError
                )
                raise error_cls(message, provider=self.provider.value, payload=event)

            elif event_type == "message_stop":
                break

    def parse_completion(self, data: Dict[str, Any]) -> Completion:
        text = "".join(
            block.get("text", "")
            for block in data.get("content", [])
            if block.get("type") == "text"
        )
        usage = data.get("usage") or {}

        return Completion(
            text=text,
            usage=UsageRecord(
                input_tokens=usage.get("input_tokens", 0),
                output_tokens=usage.get("output_tokens", 0),
            ),
        )
