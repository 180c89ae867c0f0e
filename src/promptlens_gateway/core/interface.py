"""
Abstract provider adapter definition.

Defines the contract that every provider adapter implements, and the
streaming/usage-accounting loop they share.
"""

import json
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Any, AsyncIterator, Dict, Optional, Set, Type

import httpx

from .errors import (
    MissingCredentialError,
    UpstreamError,
    UpstreamRejectedError,
    UpstreamTransientError,
    is_model_not_found,
)
from .normalization import DEFAULT_TEMPERATURE
from .pricing import calculate_cost
from ..models.registry import ModelDescriptor, ProviderKind
from ..models.request import CompletionRequest
from ..models.response import CompletionEvent, DeltaEvent, FinalEvent, UsageRecord

logger = logging.getLogger(__name__)


class AdapterCapability(str, Enum):
    """Capabilities a provider adapter offers."""
    STREAM = "stream"
    COMPLETE = "complete"
    ACCOUNT_USAGE = "account_usage"


@dataclass(frozen=True)
class PreparedCall:
    """A provider request body, built once and reused for every call of a run."""
    path: str
    payload: Dict[str, Any]


@dataclass(frozen=True)
class Completion:
    """Result of a non-streaming call."""
    text: str
    usage: UsageRecord


def elapsed_ms(started: float) -> int:
    """Milliseconds since ``started`` (a ``time.monotonic()`` reading)."""
    return int((time.monotonic() - started) * 1000)


class ProviderAdapter(ABC):
    """
    Abstract base class for provider adapters.

    An adapter turns a canonical request into provider HTTP calls and yields
    canonical events: zero or more DeltaEvents followed by one FinalEvent.
    """

    DEFAULT_BASE_URL: str = ""

    # Raised for "model not found" upstream failures.
    model_unavailable_error: Type[UpstreamError] = UpstreamTransientError

    def __init__(
        self,
        api_key: Optional[str],
        base_url: Optional[str] = None,
        timeout: float = 60.0,
        default_temperature: float = DEFAULT_TEMPERATURE,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize adapter.

        Args:
            api_key: Provider secret
            base_url: API URL (defaults to the provider's public endpoint)
            timeout: Request timeout in seconds
            default_temperature: Used when the request carries no temperature
            transport: Optional httpx transport, mainly for tests
        """
        self._api_key = api_key
        self._base_url = (base_url or self.DEFAULT_BASE_URL).rstrip("/")
        self._timeout = timeout
        self._default_temperature = default_temperature
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    @property
    @abstractmethod
    def provider(self) -> ProviderKind:
        """Provider this adapter speaks to."""

    @property
    def capabilities(self) -> Set[AdapterCapability]:
        return {
            AdapterCapability.STREAM,
            AdapterCapability.COMPLETE,
            AdapterCapability.ACCOUNT_USAGE,
        }

    @property
    def is_connected(self) -> bool:
        return self._client is not None

    @abstractmethod
    def _headers(self) -> Dict[str, str]:
        """Authentication and protocol headers for every call."""

    @abstractmethod
    def normalize_temperature(self, model_id: str, temperature: Optional[float]) -> float:
        """Map the caller's temperature into the range the model accepts."""

    @abstractmethod
    def prepare(self, request: CompletionRequest, model: ModelDescriptor) -> PreparedCall:
        """Build the provider request body."""

    @abstractmethod
    def iter_fragments(self, response: httpx.Response) -> AsyncIterator[str]:
        """Yield text fragments from an open streaming response."""

    @abstractmethod
    def parse_completion(self, data: Dict[str, Any]) -> Completion:
        """Extract text and usage from a non-streaming response body."""

    async def connect(self) -> None:
        """Initialize HTTP client for the provider."""
        if self._client is not None:
            return

        if not self._api_key:
            raise MissingCredentialError("API key required", provider=self.provider.value)

        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers=self._headers(),
            timeout=self._timeout,
            transport=self._transport,
        )
        logger.info(f"Connected to {self.provider.value} at {self._base_url}")

    async def disconnect(self) -> None:
        """Close HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
            logger.info(f"Disconnected from {self.provider.value}")

    def supports(self, capability: AdapterCapability) -> bool:
        return capability in self.capabilities

    def should_fall_back(self, error: UpstreamError) -> bool:
        """Whether a failed stream open is retried once without streaming."""
        return False

    async def complete(self, call: PreparedCall) -> Completion:
        """Make one non-streaming call."""
        if not self._client:
            await self.connect()

        try:
            response = await self._client.post(call.path, json=call.payload)
        except httpx.RequestError as e:
            raise UpstreamTransientError(
                str(e) or e.__class__.__name__, provider=self.provider.value
            ) from e

        self._check_response_errors(response)

        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            raise UpstreamRejectedError(
                f"Invalid response body: {response.text[:500]}",
                provider=self.provider.value,
                status_code=response.status_code,
            )
        return self.parse_completion(data)

    async def account_usage(self, call: PreparedCall) -> UsageRecord:
        """
        Obtain authoritative token counts.

        Neither provider reliably reports usage inside its stream, so this
        repeats the call without streaming. It must only run after the
        stream has been drained.
        """
        completion = await self.complete(call)
        return completion.usage

    async def open_stream(self, call: PreparedCall) -> httpx.Response:
        """Start a streaming call; raises if the provider rejects it."""
        if not self._client:
            await self.connect()

        request = self._client.build_request(
            "POST", call.path, json={**call.payload, "stream": True}
        )
        try:
            response = await self._client.send(request, stream=True)
        except httpx.RequestError as e:
            raise UpstreamTransientError(
                str(e) or e.__class__.__name__, provider=self.provider.value
            ) from e

        if response.status_code != 200:
            await response.aread()
            await response.aclose()
            self._check_response_errors(response)
        return response

    async def run(
        self,
        request: CompletionRequest,
        model: ModelDescriptor,
        started: float,
    ) -> AsyncIterator[CompletionEvent]:
        """
        Run one completion.

        Args:
            request: Canonical request
            model: Resolved registry descriptor
            started: ``time.monotonic()`` reading taken at dispatch

        Yields:
            DeltaEvents followed by exactly one FinalEvent
        """
        call = self.prepare(request, model)

        if not request.stream:
            yield await self._single_shot(call, model, started)
            return

        try:
            response = await self.open_stream(call)
        except UpstreamError as e:
            if not self.should_fall_back(e):
                raise
            logger.warning(
                f"{self.provider.value} stream for {model.id} failed ({e.message}), "
                "falling back to non-streaming mode"
            )
            response = None

        if response is None:
            yield await self._single_shot(call, model, started)
            return

        full_response = ""
        try:
            async for fragment in self.iter_fragments(response):
                if not fragment:
                    continue
                full_response += fragment
                yield DeltaEvent(
                    content=fragment,
                    full_response=full_response,
                    response_time_ms=elapsed_ms(started),
                )
        except httpx.RequestError as e:
            raise UpstreamTransientError(
                str(e) or e.__class__.__name__, provider=self.provider.value
            ) from e
        finally:
            await response.aclose()

        usage = await self.account_usage(call)
        yield self._final_event(full_response, usage, model, started)

    async def _single_shot(
        self,
        call: PreparedCall,
        model: ModelDescriptor,
        started: float,
    ) -> FinalEvent:
        completion = await self.complete(call)
        event = self._final_event(completion.text, completion.usage, model, started)
        return event.model_copy(update={"content": completion.text, "streamed": False})

    def _final_event(
        self,
        full_response: str,
        usage: UsageRecord,
        model: ModelDescriptor,
        started: float,
    ) -> FinalEvent:
        cost = calculate_cost(usage, model)
        logger.info(
            f"{self.provider.value} cost calculation for {model.id}: "
            f"input_tokens={usage.input_tokens} output_tokens={usage.output_tokens} "
            f"input_cost_per_1m={model.input_cost_per_1m} "
            f"output_cost_per_1m={model.output_cost_per_1m} cost={cost}"
        )
        return FinalEvent(
            full_response=full_response,
            total_tokens=usage.total_tokens,
            cost=cost,
            response_time_ms=elapsed_ms(started),
        )

    async def _iter_data(self, response: httpx.Response) -> AsyncIterator[Dict[str, Any]]:
        """Yield decoded JSON objects from the ``data:`` lines of an SSE body."""
        async for line in response.aiter_lines():
            if not line.startswith("data:"):
                continue
            data = line[5:].strip()
            if data == "[DONE]":
                break
            try:
                yield json.loads(data)
            except json.JSONDecodeError:
                continue

    def _check_response_errors(self, response: httpx.Response) -> None:
        """Check response for errors and raise the matching upstream error."""
        if response.status_code == 200:
            return

        payload = None
        try:
            payload = response.json()
        except ValueError:
            pass

        detail = json.dumps(payload) if payload is not None else response.text
        message = f"Request failed: {response.status_code} - {detail}"
        error_cls = self._classify(response.status_code, payload, message)

        raise error_cls(
            message,
            provider=self.provider.value,
            status_code=response.status_code,
            payload=payload if isinstance(payload, dict) else None,
        )

    def _classify(self, status_code: int, payload: Any, message: str) -> Type[UpstreamError]:
        if status_code == 429 or status_code >= 500:
            return UpstreamTransientError

        probe = UpstreamError(message, payload=payload if isinstance(payload, dict) else None)
        if is_model_not_found(probe):
            return self.model_unavailable_error

        return UpstreamRejectedError

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(provider={self.provider.value!r}, base_url={self._base_url!r})"


__all__ = [
    "AdapterCapability",
    "Completion",
    "PreparedCall",
    "ProviderAdapter",
    "elapsed_ms",
]
