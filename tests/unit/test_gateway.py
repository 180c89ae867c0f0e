"""
Unit tests for the completion gateway: resolution, forwarding and lifecycle.
"""
import httpx
import pytest
import sqlalchemy as sa

from promptlens_gateway.adapters import OpenAIAdapter
from promptlens_gateway.core.errors import (
    MissingCredentialError,
    ModelNotFoundError,
    UnsupportedProviderError,
    UpstreamRejectedError,
    UpstreamTransientError,
)
from promptlens_gateway.core.gateway import CompletionGateway, CompletionState
from promptlens_gateway.core.registry import AdapterRegistry
from promptlens_gateway.models import (
    CompletionRequest,
    DeltaEvent,
    FinalEvent,
    Message,
    ProviderKind,
)
from promptlens_gateway.storage import ModelRegistry, SqlCredentialStore, tables

from fakes import openai_completion, openai_stream


def request_for(model: str, **kwargs) -> CompletionRequest:
    return CompletionRequest(model=model, messages=[Message(role="user", content="Say hello")], **kwargs)


@pytest.fixture
def gateway(migrated_engine, credentials, upstream):
    return CompletionGateway(
        ModelRegistry(migrated_engine), credentials, transport=upstream.transport
    )


class TestResolution:
    """Test failures before dispatch make no upstream calls."""

    @pytest.mark.asyncio
    async def test_unknown_model(self, gateway, upstream):
        """Test an unregistered model id fails with ModelNotFoundError."""
        run = gateway.start(request_for("gpt-99"))

        with pytest.raises(ModelNotFoundError, match="gpt-99"):
            async for _ in run.events():
                pass

        assert run.state is CompletionState.FAILED
        assert upstream.calls == []

    @pytest.mark.asyncio
    async def test_missing_credential(self, migrated_engine, upstream):
        """Test a model whose provider has no stored key."""
        gateway = CompletionGateway(
            ModelRegistry(migrated_engine),
            SqlCredentialStore(migrated_engine),
            transport=upstream.transport,
        )

        with pytest.raises(MissingCredentialError, match="openai API key not found"):
            async for _ in gateway.stream(request_for("gpt-4o-mini")):
                pass

        assert upstream.calls == []

    @pytest.mark.asyncio
    async def test_unsupported_provider(self, gateway, migrated_engine, credentials, upstream):
        """Test a registry row naming a provider without an adapter."""
        async with migrated_engine.begin() as conn:
            await conn.execute(sa.insert(tables.models).values(
                id="mistral-large", name="Mistral Large", provider="mistral",
                multilingual=True, vision=False, message_batches=False,
                context_window=32000, max_output_tokens=4096,
                input_cost_per_1m=2.0, output_cost_per_1m=6.0, latency="Fast",
            ))
        await credentials.put("mistral", "mk-test")

        with pytest.raises(UnsupportedProviderError):
            async for _ in gateway.stream(request_for("mistral-large")):
                pass

        assert upstream.calls == []


class TestForwarding:
    """Test canonical events reach the caller in order."""

    @pytest.mark.asyncio
    async def test_streaming_completion(self, gateway, upstream):
        """Test deltas then one final with registry pricing."""
        upstream.queue(openai_stream(["Hel", "lo", "!"]))
        upstream.queue(openai_completion("Hello!", 12, 3))
        run = gateway.start(request_for("gpt-4o-mini"))

        events = [event async for event in run.events()]

        assert run.state is CompletionState.COMPLETED
        assert [type(e) for e in events] == [DeltaEvent, DeltaEvent, DeltaEvent, FinalEvent]

        final = events[-1]
        assert final.full_response == "Hello!"
        assert final.total_tokens == 15
        assert final.cost == pytest.approx((12 * 0.15 + 3 * 0.60) / 1_000_000)
        assert final.done

        previous = ""
        for event in events:
            assert event.full_response.startswith(previous)
            assert final.full_response.startswith(event.full_response)
            previous = event.full_response

        timings = [e.response_time_ms for e in events]
        assert timings == sorted(timings)

    @pytest.mark.asyncio
    async def test_uses_stored_secret(self, gateway, upstream):
        """Test the credential store's secret is sent upstream."""
        upstream.queue(openai_stream(["ok"]))
        upstream.queue(openai_completion("ok", 1, 1))

        async for _ in gateway.stream(request_for("gpt-4o-mini")):
            pass

        assert all(c.headers["authorization"] == "Bearer sk-test-openai" for c in upstream.calls)

    @pytest.mark.asyncio
    async def test_upstream_error_fails_run(self, gateway, upstream):
        """Test upstream rejections propagate and fail the run."""
        upstream.queue(httpx.Response(400, json={"error": {"message": "bad request"}}))
        run = gateway.start(request_for("gpt-4o-mini"))

        with pytest.raises(UpstreamRejectedError):
            async for _ in run.events():
                pass

        assert run.state is CompletionState.FAILED


class TestLifecycle:
    """Test cancellation and incomplete streams."""

    @pytest.mark.asyncio
    async def test_caller_disconnect_skips_usage_call(self, gateway, upstream):
        """Test closing after the first delta releases the stream without accounting."""
        upstream.queue(openai_stream(["one", "two", "three"]))
        run = gateway.start(request_for("gpt-4o-mini"))
        events = run.events()

        first = await events.__anext__()
        assert isinstance(first, DeltaEvent)
        assert run.state is CompletionState.STREAMING

        await events.aclose()

        assert run.state is CompletionState.FAILED
        assert len(upstream.calls) == 1

    @pytest.mark.asyncio
    async def test_stream_without_final_event(self, migrated_engine, credentials, upstream):
        """Test a provider stream that ends early is a failure."""

        class TruncatingAdapter(OpenAIAdapter):
            async def run(self, request, model, started):
                yield DeltaEvent(content="partial", full_response="partial", response_time_ms=1)

        adapters = AdapterRegistry()
        adapters.register_adapter(ProviderKind.OPENAI, TruncatingAdapter)
        gateway = CompletionGateway(ModelRegistry(migrated_engine), credentials, adapters=adapters)
        run = gateway.start(request_for("gpt-4o-mini"))

        received = []
        with pytest.raises(UpstreamTransientError, match="without a final event"):
            async for event in run.events():
                received.append(event)

        assert [e.content for e in received] == ["partial"]
        assert run.state is CompletionState.FAILED
