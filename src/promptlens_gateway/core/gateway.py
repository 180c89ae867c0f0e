"""
Completion gateway.

Resolves a request to a registry descriptor, a credential and an adapter,
then forwards the adapter's canonical events to the caller.
"""

import logging
import time
from enum import Enum
from typing import AsyncIterator, Optional, Tuple

import httpx
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

from .config import GatewaySettings
from .errors import MissingCredentialError, UpstreamTransientError
from .interface import ProviderAdapter
from .registry import AdapterRegistry
from ..models.registry import ModelDescriptor
from ..models.request import CompletionRequest, Principal, DEFAULT_PRINCIPAL
from ..models.response import CompletionEvent, FinalEvent
from ..storage.credentials import CredentialStore
from ..storage.models_repo import ModelRegistry

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class CompletionState(str, Enum):
    """Lifecycle of one completion request."""
    RESOLVING = "resolving"
    DISPATCHED = "dispatched"
    STREAMING = "streaming"
    FINALIZING = "finalizing"
    COMPLETED = "completed"
    FAILED = "failed"


class CompletionRun:
    """
    One completion request in flight.

    ``events()`` may be consumed once. Closing it early (caller disconnect)
    closes the upstream response and releases the adapter.
    """

    def __init__(self, gateway: "CompletionGateway", request: CompletionRequest, principal: Principal):
        self.request = request
        self.principal = principal
        self.state = CompletionState.RESOLVING
        self.model: Optional[ModelDescriptor] = None
        self._gateway = gateway

    async def events(self) -> AsyncIterator[CompletionEvent]:
        try:
            model, adapter = await self._gateway._resolve(self.request, self.principal)
        except BaseException:
            self.state = CompletionState.FAILED
            raise
        self.model = model

        # Not made current: the first event and the rest may be pulled from
        # different tasks.
        span = tracer.start_span("completion")
        span.set_attribute("model", model.id)
        span.set_attribute("provider", adapter.provider.value)

        self.state = CompletionState.DISPATCHED
        started = time.monotonic()
        stream = adapter.run(self.request, model, started)
        try:
            async for event in stream:
                if isinstance(event, FinalEvent):
                    self.state = CompletionState.FINALIZING
                    span.set_attribute("total_tokens", event.total_tokens)
                    span.set_attribute("cost", event.cost)
                    self.state = CompletionState.COMPLETED
                else:
                    self.state = CompletionState.STREAMING
                yield event

            if self.state is not CompletionState.COMPLETED:
                raise UpstreamTransientError(
                    "Provider stream ended without a final event",
                    provider=adapter.provider.value,
                )
        except GeneratorExit:
            if self.state is not CompletionState.COMPLETED:
                self.state = CompletionState.FAILED
                logger.info(f"Completion for {model.id} closed by caller")
            raise
        except BaseException as e:
            self.state = CompletionState.FAILED
            logger.error(f"Completion for {model.id} failed: {e}")
            span.record_exception(e)
            span.set_status(Status(StatusCode.ERROR, str(e)))
            raise
        finally:
            await stream.aclose()
            await adapter.disconnect()
            span.end()


class CompletionGateway:
    """
    Front door for completions.

    Holds only read-mostly collaborators, so one instance serves every
    request concurrently.
    """

    def __init__(
        self,
        registry: ModelRegistry,
        credentials: CredentialStore,
        adapters: Optional[AdapterRegistry] = None,
        settings: Optional[GatewaySettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize gateway.

        Args:
            registry: Model registry
            credentials: Credential store
            adapters: Provider adapter registry (both built-in providers by default)
            settings: Endpoint and temperature settings
            transport: Optional httpx transport handed to every adapter
        """
        if adapters is None:
            from ..adapters import default_adapter_registry
            adapters = default_adapter_registry()

        self._registry = registry
        self._credentials = credentials
        self._adapters = adapters
        self._settings = settings or GatewaySettings()
        self._transport = transport

    @property
    def adapters(self) -> AdapterRegistry:
        return self._adapters

    def start(self, request: CompletionRequest, principal: Principal = DEFAULT_PRINCIPAL) -> CompletionRun:
        """Create a run; nothing happens until its events are consumed."""
        return CompletionRun(self, request, principal)

    def stream(
        self,
        request: CompletionRequest,
        principal: Principal = DEFAULT_PRINCIPAL,
    ) -> AsyncIterator[CompletionEvent]:
        return self.start(request, principal).events()

    async def _resolve(
        self,
        request: CompletionRequest,
        principal: Principal,
    ) -> Tuple[ModelDescriptor, ProviderAdapter]:
        model = await self._registry.get(request.model)

        secret = await self._credentials.get(model.provider, principal)
        if not secret:
            raise MissingCredentialError(
                f"{model.provider} API key not found", provider=model.provider
            )

        kind = self._adapters.resolve_kind(model.provider)
        adapter = self._adapters.create_adapter(
            kind,
            api_key=secret,
            endpoint=self._settings.endpoint(kind.value),
            default_temperature=self._settings.default_temperature,
            transport=self._transport,
        )
        logger.info(f"Dispatching {model.id} to {kind.value}")
        return model, adapter


__all__ = ["CompletionGateway", "CompletionRun", "CompletionState"]
