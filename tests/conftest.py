"""Pytest configuration and fixtures."""
import asyncio
import json
from typing import Any, Callable, Dict, List, Optional, Sequence

import httpx
import pytest

from smartsummary.core.errors import error_message
from smartsummary.core.events import (
    ChunkEvent,
    CompleteEvent,
    CompletionResult,
    ErrorEvent,
    StartEvent,
)


def make_sse_body(*payloads: Any, done: bool = True) -> bytes:
    """Build an OpenAI-compatible upstream stream body."""
    lines = []
    for payload in payloads:
        data = payload if isinstance(payload, str) else json.dumps(payload)
        lines.append(f"data: {data}\n\n")
    if done:
        lines.append("data: [DONE]\n\n")
    return "".join(lines).encode("utf-8")


def delta(content: str) -> Dict[str, Any]:
    return {"choices": [{"index": 0, "delta": {"content": content}}]}


def make_result(summary: str = "A short summary.", model: str = "openai/gpt-3.5-turbo") -> CompletionResult:
    return CompletionResult(
        summary_text=summary,
        total_tokens=1500,
        prompt_tokens=1000,
        completion_tokens=500,
        cost_usd=0.0025,
        model=model,
    )


class ScriptedProvider:
    """Provider double that replays a fixed event script.

    If ``error`` is set the script ends the way real adapters fail: an
    ``ErrorEvent`` followed by raising the same failure.
    """

    def __init__(
        self,
        name: str,
        display_name: str,
        events: Sequence[Any] = (),
        error: Optional[Exception] = None,
        hang_after: Optional[int] = None,
    ):
        self.name = name
        self.display_name = display_name
        self.events = list(events)
        self.error = error
        self.hang_after = hang_after
        self.calls = 0
        self.requests: List[tuple] = []
        self.closed = False

    def stream_summarize(self, text: str, options: Any = None):
        self.calls += 1
        self.requests.append((text, options))
        return self._run()

    async def _run(self):
        try:
            for index, event in enumerate(self.events):
                if self.hang_after is not None and index == self.hang_after:
                    await asyncio.sleep(3600)
                yield event
            if self.error is not None:
                yield ErrorEvent(message=error_message(self.error))
                raise self.error
        finally:
            self.closed = True


def successful_script(*chunks: str, model: str = "openai/gpt-3.5-turbo") -> List[Any]:
    events: List[Any] = [StartEvent()]
    events.extend(ChunkEvent(content=c) for c in chunks)
    events.append(CompleteEvent(result=make_result("".join(chunks), model=model)))
    return events


async def collect(stream) -> tuple:
    """Drain an event stream; return (events, raised exception or None)."""
    events = []
    try:
        async for event in stream:
            events.append(event)
    except Exception as e:
        return events, e
    return events, None


@pytest.fixture
def sse_body() -> Callable[..., bytes]:
    return make_sse_body


@pytest.fixture
def mock_client_factory():
    """Build httpx.AsyncClient instances backed by a MockTransport handler."""
    clients: List[httpx.AsyncClient] = []

    def factory(handler) -> httpx.AsyncClient:
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    return factory
