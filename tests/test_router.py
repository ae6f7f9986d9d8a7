"""Tests for core/router.py primary/fallback selection."""
import pytest

from smartsummary.adapters.llm.base import SummarizeOptions
from smartsummary.core.errors import ConfigurationError, LLMRateLimitError, LLMServiceError
from smartsummary.core.events import ChunkEvent, CompleteEvent, ErrorEvent, StartEvent
from smartsummary.core.router import NO_PROVIDER_MESSAGE, LLMRouter

from conftest import ScriptedProvider, collect, successful_script


def _openrouter(**kwargs):
    return ScriptedProvider("openrouter", "OpenRouter", **kwargs)


def _openai(**kwargs):
    return ScriptedProvider("openai", "OpenAI", **kwargs)


def test_no_provider_fails_before_any_event():
    router = LLMRouter()
    with pytest.raises(ConfigurationError) as exc_info:
        router.stream_summarize("Some text here")
    assert exc_info.value.message == NO_PROVIDER_MESSAGE
    assert router.service_name == "None"


def test_service_name_prefers_primary():
    assert LLMRouter(_openrouter(), _openai()).service_name == "OpenRouter"
    assert LLMRouter(None, _openai()).service_name == "OpenAI"


@pytest.mark.asyncio
async def test_primary_only_failure_propagates():
    primary = _openrouter(events=[StartEvent()], error=LLMServiceError("OpenRouter API error: 500", 500))
    router = LLMRouter(primary, None)

    events, error = await collect(router.stream_summarize("Some text here"))

    assert events == [StartEvent(), ErrorEvent(message="OpenRouter API error: 500")]
    assert isinstance(error, LLMServiceError)


@pytest.mark.asyncio
async def test_fallback_only_is_used():
    fallback = _openai(events=successful_script("Hi", model="gpt-3.5-turbo"))
    router = LLMRouter(None, fallback)

    events, error = await collect(router.stream_summarize("Some text here"))

    assert error is None
    assert fallback.calls == 1
    assert events[-1].result.model == "gpt-3.5-turbo"


@pytest.mark.asyncio
async def test_primary_success_never_calls_fallback():
    primary = _openrouter(events=successful_script("Hello", " World"))
    fallback = _openai(events=successful_script("unused"))
    router = LLMRouter(primary, fallback)

    events, error = await collect(router.stream_summarize("Some text here"))

    assert error is None
    assert fallback.calls == 0
    chunks = "".join(e.content for e in events if isinstance(e, ChunkEvent))
    assert chunks == events[-1].result.summary_text == "Hello World"


@pytest.mark.asyncio
async def test_rate_limit_never_falls_back():
    primary = _openrouter(events=[StartEvent()], error=LLMRateLimitError("Slow down", retry_after=10))
    fallback = _openai(events=successful_script("unused"))
    router = LLMRouter(primary, fallback)

    events, error = await collect(router.stream_summarize("Some text here"))

    assert fallback.calls == 0
    assert events == [StartEvent(), ErrorEvent(message="Slow down")]
    assert isinstance(error, LLMRateLimitError)
    assert error.retry_after == 10


@pytest.mark.asyncio
async def test_generic_failure_falls_back_with_single_start():
    primary = _openrouter(events=[StartEvent()], error=LLMServiceError("OpenRouter API error: 502", 502))
    fallback = _openai(events=successful_script("From", " fallback", model="gpt-3.5-turbo"))
    router = LLMRouter(primary, fallback)
    options = SummarizeOptions(model="gpt-3.5-turbo", max_tokens=200)

    events, error = await collect(router.stream_summarize("Some text here", options))

    assert error is None
    assert fallback.calls == 1
    assert fallback.requests == [("Some text here", options)]
    assert primary.requests == fallback.requests
    # The primary's error is not surfaced; the client sees one clean sequence
    assert [type(e) for e in events] == [StartEvent, ChunkEvent, ChunkEvent, CompleteEvent]
    assert events[-1].result.summary_text == "From fallback"
    assert events[-1].result.model == "gpt-3.5-turbo"


@pytest.mark.asyncio
async def test_both_fail_surfaces_fallback_error():
    primary = _openrouter(events=[StartEvent()], error=LLMServiceError("OpenRouter API error: 500", 500))
    fallback = _openai(events=[StartEvent()], error=LLMServiceError("OpenAI API error: 503", 503))
    router = LLMRouter(primary, fallback)

    events, error = await collect(router.stream_summarize("Some text here"))

    assert events == [StartEvent(), ErrorEvent(message="OpenAI API error: 503")]
    assert isinstance(error, LLMServiceError)
    assert error.message == "OpenAI API error: 503"


@pytest.mark.asyncio
async def test_failure_after_content_does_not_fall_back():
    primary = _openrouter(
        events=[StartEvent(), ChunkEvent(content="Partial")],
        error=LLMServiceError("Failed to stream summarize: connection reset"),
    )
    fallback = _openai(events=successful_script("unused"))
    router = LLMRouter(primary, fallback)

    events, error = await collect(router.stream_summarize("Some text here"))

    assert fallback.calls == 0
    assert events == [
        StartEvent(),
        ChunkEvent(content="Partial"),
        ErrorEvent(message="Failed to stream summarize: connection reset"),
    ]
    assert isinstance(error, LLMServiceError)


@pytest.mark.asyncio
async def test_closing_router_stream_closes_provider_stream():
    primary = _openrouter(events=successful_script("a", "b", "c"))
    router = LLMRouter(primary, _openai())

    stream = router.stream_summarize("Some text here")
    assert isinstance(await stream.__anext__(), StartEvent)
    await stream.aclose()

    assert primary.closed is True
