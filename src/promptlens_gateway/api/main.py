"""
PromptLens Gateway Service

A FastAPI service exposing the completion gateway and its supporting data.

Features:
- Streaming completions as Server-Sent-Events, with a single JSON body for
  non-streamed results
- Model registry listing with favorite flags
- Provider API key storage
- Comparison history
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import httpx
from fastapi import FastAPI, Query, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, StreamingResponse
from opentelemetry import trace
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import OTLPSpanExporter
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import BatchSpanProcessor
from opentelemetry.sdk.resources import Resource

from .schemas import ApiKeyRequest, ComparisonCreate
from .streaming import format_sse
from ..core.config import GatewaySettings, load_settings
from ..core.errors import GatewayError, InvalidRequestError, MigrationError, UpstreamTransientError
from ..core.gateway import CompletionGateway
from ..migrations import MigrationManager
from ..models.request import CompletionRequest, DEFAULT_PRINCIPAL
from ..models.response import CompletionEvent, FinalEvent
from ..storage import HistoryRepository, ModelRegistry, SqlCredentialStore, create_engine

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

SERVICE_NAME = "promptlens-gateway"


def _setup_tracing(endpoint: str) -> TracerProvider:
    resource = Resource.create({"service.name": SERVICE_NAME})
    provider = TracerProvider(resource=resource)
    processor = BatchSpanProcessor(OTLPSpanExporter(endpoint=endpoint))
    provider.add_span_processor(processor)
    trace.set_tracer_provider(provider)
    return provider


async def _sse_frames(first: CompletionEvent, events: AsyncIterator[CompletionEvent]) -> AsyncIterator[str]:
    """
    Stream frames after the first event has been pulled.

    Once the response has started, a failure can only end the stream: no
    terminal frame is sent and the caller sees a truncated response.
    """
    try:
        yield format_sse(first)
        async for event in events:
            yield format_sse(event)
    except GatewayError as e:
        logger.error(f"Completion stream truncated: {e.message}")
    finally:
        await events.aclose()


def create_app(
    settings: Optional[GatewaySettings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the service.

    Args:
        settings: Service configuration (loaded from file/environment if None)
        transport: Optional httpx transport for upstream calls, mainly for tests
    """
    settings = settings or load_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        tracer_provider = None
        if settings.otel_endpoint:
            tracer_provider = _setup_tracing(settings.otel_endpoint)

        engine = create_engine(settings.database_url)

        # Migrations must finish before any request is served
        try:
            version = await MigrationManager(engine).initialize()
        except MigrationError as e:
            logger.error(f"Database initialization failed: {e}")
            await engine.dispose()
            raise
        logger.info(f"Database ready at schema version {version}")

        credentials = SqlCredentialStore(engine)
        for provider, secret in settings.api_keys.items():
            await credentials.put(provider, secret)

        registry = ModelRegistry(engine)
        app.state.engine = engine
        app.state.registry = registry
        app.state.credentials = credentials
        app.state.history = HistoryRepository(engine)
        app.state.gateway = CompletionGateway(
            registry, credentials, settings=settings, transport=transport
        )

        logger.info("PromptLens gateway started")
        yield

        if tracer_provider:
            try:
                tracer_provider.force_flush(timeout_millis=5000)
            except Exception as e:
                logger.warning(f"Error flushing traces: {e}")

        await engine.dispose()
        logger.info("PromptLens gateway stopped")

    app = FastAPI(
        title="PromptLens Gateway",
        description="Unified streaming completion gateway for LLM providers",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", "X-Requested-With"],
    )

    if settings.otel_endpoint:
        FastAPIInstrumentor.instrument_app(app)

    @app.exception_handler(GatewayError)
    async def gateway_error_handler(request: Request, exc: GatewayError):
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        details = "; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
            for error in exc.errors()
        )
        return JSONResponse(status_code=400, content={"error": f"Invalid request: {details}"})

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.url.path}: {exc}")
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    # =========================================================================
    # Health
    # =========================================================================

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    # =========================================================================
    # Completions
    # =========================================================================

    @app.post("/api/completions")
    async def create_completion(body: CompletionRequest, request: Request):
        """
        Run one completion.

        The first event is pulled before the response starts, so resolution
        and stream-open failures still produce a JSON error with a status code.
        """
        gateway: CompletionGateway = request.app.state.gateway
        events = gateway.stream(body, DEFAULT_PRINCIPAL)

        try:
            first = await events.__anext__()
        except StopAsyncIteration:
            raise UpstreamTransientError("Provider returned no events") from None

        if isinstance(first, FinalEvent) and not first.streamed:
            await events.aclose()
            return JSONResponse(content=first.to_wire())

        return StreamingResponse(
            _sse_frames(first, events),
            media_type="text/event-stream",
            headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
        )

    # =========================================================================
    # Model Registry
    # =========================================================================

    @app.get("/api/models")
    async def list_models(request: Request):
        """List registry models with favorite flags."""
        models = await request.app.state.registry.list_models(DEFAULT_PRINCIPAL)
        return [m.model_dump(mode="json", by_alias=True) for m in models]

    # =========================================================================
    # API Keys
    # =========================================================================

    @app.get("/api/keys/info")
    async def api_key_info(request: Request):
        """Report which providers have a stored key."""
        providers = request.app.state.gateway.adapters.list_providers()
        return await request.app.state.credentials.info(providers, DEFAULT_PRINCIPAL)

    @app.post("/api/keys")
    async def save_api_key(body: ApiKeyRequest, request: Request):
        """Store or replace a provider key."""
        providers = request.app.state.gateway.adapters.list_providers()
        if body.provider not in providers:
            raise InvalidRequestError(f"Unknown provider: {body.provider}", provider=body.provider)

        await request.app.state.credentials.put(body.provider, body.api_key, DEFAULT_PRINCIPAL)
        return {"success": True}

    # =========================================================================
    # Comparison History
    # =========================================================================

    @app.get("/api/comparisons")
    async def list_comparisons(request: Request, limit: int = Query(10, ge=1, le=100)):
        """Most recent saved comparisons."""
        return await request.app.state.history.recent_comparisons(limit, DEFAULT_PRINCIPAL)

    @app.post("/api/comparisons")
    async def save_comparison(body: ComparisonCreate, request: Request):
        """Save a comparison."""
        comparison_id = await request.app.state.history.save_comparison(
            body.system_prompt, body.user_prompt, body.responses, DEFAULT_PRINCIPAL
        )
        return {"id": comparison_id}

    return app


def main() -> None:
    """Run the service with uvicorn."""
    import uvicorn

    settings = load_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
