"""
Unit tests for the Anthropic-shaped adapter.
"""
import time

import httpx
import pytest

from promptlens_gateway.adapters import AnthropicAdapter
from promptlens_gateway.core.errors import (
    UpstreamModelUnavailableError,
    UpstreamRejectedError,
    UpstreamTransientError,
)
from promptlens_gateway.models import CompletionRequest, DeltaEvent, FinalEvent, Message

from fakes import anthropic_completion, anthropic_stream, sse


async def collect(adapter, request, model):
    try:
        return [event async for event in adapter.run(request, model, time.monotonic())]
    finally:
        await adapter.disconnect()


def claude_request(**kwargs):
    return CompletionRequest(
        model="claude-3-5-haiku-20241022",
        messages=[Message(role="user", content="Name a color")],
        **kwargs,
    )


class TestAnthropicStreaming:
    """Test event filtering and usage accounting."""

    @pytest.mark.asyncio
    async def test_forwards_text_deltas_only(self, upstream, descriptor):
        """Test only content_block_delta text is forwarded."""
        upstream.queue(anthropic_stream(["Bl", "ue"]))
        upstream.queue(anthropic_completion("Blue", 10, 2))
        model = descriptor("claude-3-5-haiku-20241022", input_cost_per_1m=0.8, output_cost_per_1m=4.0)
        adapter = AnthropicAdapter(api_key="sk-ant", transport=upstream.transport)

        events = await collect(adapter, claude_request(), model)

        assert [type(e) for e in events] == [DeltaEvent, DeltaEvent, FinalEvent]
        assert events[1].full_response == "Blue"
        assert events[-1].total_tokens == 12
        assert events[-1].cost == pytest.approx((10 * 0.8 + 2 * 4.0) / 1_000_000)
        assert len(upstream.calls) == 2

    @pytest.mark.asyncio
    async def test_ignores_ping_and_json_deltas(self, upstream, descriptor):
        """Test non-text events are dropped."""
        body = sse([
            {"type": "ping"},
            {"type": "content_block_delta", "delta": {"type": "input_json_delta", "partial_json": "{"}},
            {"type": "content_block_delta", "delta": {"type": "text_delta", "text": "Red"}},
            {"type": "message_delta", "delta": {"stop_reason": "end_turn"}, "usage": {"output_tokens": 1}},
            {"type": "message_stop"},
        ], done=False)
        upstream.queue(httpx.Response(200, content=body))
        upstream.queue(anthropic_completion("Red", 10, 1))
        adapter = AnthropicAdapter(api_key="sk-ant", transport=upstream.transport)

        events = await collect(adapter, claude_request(), descriptor("claude-3-5-haiku-20241022"))

        assert [e.content for e in events] == ["Red", ""]

    @pytest.mark.asyncio
    async def test_request_shape(self, upstream, descriptor):
        """Test system extraction, headers and temperature clamping."""
        upstream.queue(anthropic_stream(["ok"]))
        upstream.queue(anthropic_completion("ok", 1, 1))
        model = descriptor("claude-3-5-haiku-20241022", max_output_tokens=8192)
        adapter = AnthropicAdapter(api_key="sk-ant", transport=upstream.transport)
        request = CompletionRequest(
            model=model.id,
            messages=[
                Message(role="system", content="Answer in one word."),
                Message(role="user", content="Name a color"),
            ],
            temperature=1.8,
        )

        await collect(adapter, request, model)

        call = upstream.calls[0]
        assert call.url.path == "/v1/messages"
        assert call.headers["x-api-key"] == "sk-ant"
        assert call.headers["anthropic-version"] == "2023-06-01"
        payload = upstream.payloads()[0]
        assert payload["system"] == "Answer in one word."
        assert payload["messages"] == [{"role": "user", "content": "Name a color"}]
        assert payload["temperature"] == 1.0
        assert payload["max_tokens"] == 8192

    @pytest.mark.asyncio
    async def test_separate_system_prompt(self, upstream, descriptor):
        """Test systemPrompt is used when the messages carry none."""
        upstream.queue(anthropic_stream(["ok"]))
        upstream.queue(anthropic_completion("ok", 1, 1))
        adapter = AnthropicAdapter(api_key="sk-ant", transport=upstream.transport)

        await collect(adapter, claude_request(systemPrompt="Be terse."), descriptor("claude-3-5-haiku-20241022"))

        assert upstream.payloads()[0]["system"] == "Be terse."


class TestAnthropicErrors:
    """Test upstream error mapping."""

    @pytest.mark.asyncio
    async def test_in_stream_overloaded_error(self, upstream, descriptor):
        """Test an overloaded error event mid-stream is transient."""
        body = sse([
            {"type": "content_block_delta", "delta": {"type": "text_delta", "text": "Gr"}},
            {"type": "error", "error": {"type": "overloaded_error", "message": "Overloaded"}},
        ], done=False)
        upstream.queue(httpx.Response(200, content=body))
        adapter = AnthropicAdapter(api_key="sk-ant", transport=upstream.transport)

        with pytest.raises(UpstreamTransientError, match="Overloaded"):
            await collect(adapter, claude_request(), descriptor("claude-3-5-haiku-20241022"))
        assert len(upstream.calls) == 1

    @pytest.mark.asyncio
    async def test_in_stream_invalid_request(self, upstream, descriptor):
        """Test other error events are rejections."""
        body = sse([
            {"type": "error", "error": {"type": "invalid_request_error", "message": "prompt too long"}},
        ], done=False)
        upstream.queue(httpx.Response(200, content=body))
        adapter = AnthropicAdapter(api_key="sk-ant", transport=upstream.transport)

        with pytest.raises(UpstreamRejectedError):
            await collect(adapter, claude_request(), descriptor("claude-3-5-haiku-20241022"))

    @pytest.mark.asyncio
    async def test_missing_model_has_no_fallback(self, upstream, descriptor):
        """Test a not_found_error is transient and not retried."""
        upstream.queue(httpx.Response(404, json={
            "type": "error",
            "error": {"type": "not_found_error", "message": "model: claude-9"},
        }))
        adapter = AnthropicAdapter(api_key="sk-ant", transport=upstream.transport)

        with pytest.raises(UpstreamTransientError) as exc_info:
            await collect(adapter, claude_request(), descriptor("claude-3-5-haiku-20241022"))

        assert not isinstance(exc_info.value, UpstreamModelUnavailableError)
        assert len(upstream.calls) == 1
