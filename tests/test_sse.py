"""Tests for app/sse.py."""
import json
from unittest.mock import Mock

import pytest

from smartsummary.app.sse import SSEStreamer, format_sse, timeout_message
from smartsummary.core.errors import ErrorCode, LLMServiceError
from smartsummary.core.events import ChunkEvent, CompleteEvent, ErrorEvent, StartEvent

from conftest import ScriptedProvider, make_result, successful_script


async def _frames(streamer, events, is_disconnected=None):
    return [frame async for frame in streamer.frames(events, is_disconnected)]


def _decode(frame: str) -> dict:
    assert frame.startswith("data: ")
    assert frame.endswith("\n\n")
    return json.loads(frame[len("data: "):])


def test_format_sse_wire_shapes():
    assert format_sse(StartEvent()) == 'data: {"type":"start"}\n\n'
    assert format_sse(ChunkEvent(content="Hi")) == 'data: {"type":"chunk","content":"Hi"}\n\n'
    assert format_sse(ErrorEvent(message="boom")) == 'data: {"type":"error","error":"boom"}\n\n'

    complete = _decode(format_sse(CompleteEvent(result=make_result("Done"))))
    assert complete == {
        "type": "complete",
        "data": {
            "summary": "Done",
            "tokensUsed": 1500,
            "cost": 0.0025,
            "model": "openai/gpt-3.5-turbo",
            "promptTokens": 1000,
            "completionTokens": 500,
        },
    }


def test_timeout_message():
    assert timeout_message(300) == "Request timeout after 5 minutes"
    assert timeout_message(60) == "Request timeout after 1 minute"
    assert timeout_message(0.5) == "Request timeout after 0.5 seconds"


@pytest.mark.asyncio
async def test_frames_for_successful_stream():
    provider = ScriptedProvider("openrouter", "OpenRouter", events=successful_script("Hello", " World"))

    frames = await _frames(SSEStreamer(), provider.stream_summarize("text"))

    assert [_decode(f)["type"] for f in frames] == ["start", "chunk", "chunk", "complete"]


@pytest.mark.asyncio
async def test_error_event_is_not_duplicated():
    provider = ScriptedProvider(
        "openrouter", "OpenRouter", events=[StartEvent()], error=LLMServiceError("OpenAI API error: 500", 500)
    )

    frames = await _frames(SSEStreamer(), provider.stream_summarize("text"))

    assert [_decode(f) for f in frames] == [
        {"type": "start"},
        {"type": "error", "error": "OpenAI API error: 500"},
    ]


@pytest.mark.asyncio
async def test_raised_failure_without_error_event_is_synthesized():
    async def events():
        yield StartEvent()
        raise RuntimeError("kaboom")

    frames = await _frames(SSEStreamer(), events())

    assert _decode(frames[-1]) == {"type": "error", "error": "kaboom"}


@pytest.mark.asyncio
async def test_disconnect_stops_writing_and_closes_upstream():
    provider = ScriptedProvider("openrouter", "OpenRouter", events=successful_script("a", "b", "c"))
    checks = []

    async def is_disconnected():
        checks.append(True)
        # Connected for the Start frame and the first chunk
        return len(checks) > 2

    frames = await _frames(SSEStreamer(), provider.stream_summarize("text"), is_disconnected)

    assert [_decode(f) for f in frames] == [{"type": "start"}, {"type": "chunk", "content": "a"}]
    assert provider.closed is True


@pytest.mark.asyncio
async def test_stream_timeout_writes_error_frame():
    provider = ScriptedProvider(
        "openrouter", "OpenRouter", events=successful_script("never"), hang_after=1
    )

    frames = await _frames(SSEStreamer(timeout_s=0.05), provider.stream_summarize("text"))

    assert [_decode(f) for f in frames] == [
        {"type": "start"},
        {"type": "error", "error": "Request timeout after 0.05 seconds"},
    ]
    assert provider.closed is True


@pytest.mark.asyncio
async def test_stream_timeout_is_logged_with_error_code():
    logger = Mock()
    provider = ScriptedProvider(
        "openrouter", "OpenRouter", events=successful_script("never"), hang_after=1
    )

    await _frames(SSEStreamer(timeout_s=0.05, logger=logger), provider.stream_summarize("text"))

    logger.warning.assert_called_once_with(
        "stream_timeout", error_code=ErrorCode.STREAM_TIMEOUT.value, timeout_s=0.05
    )
