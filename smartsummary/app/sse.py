"""Server-Sent Events framing and transport for summary streams."""
import asyncio
import json
from contextlib import aclosing
from typing import AsyncIterator, Awaitable, Callable, Optional

from fastapi import Request
from fastapi.responses import StreamingResponse

from smartsummary.core.errors import ErrorCode, error_message
from smartsummary.core.events import ErrorEvent, StreamEvent
from smartsummary.core.logging import StructuredLogger
from smartsummary.metrics.prometheus import client_disconnects_total

SSE_HEADERS = {
    "Cache-Control": "no-cache",
    "Connection": "keep-alive",
    "X-Accel-Buffering": "no",
}

UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred"

DisconnectCheck = Callable[[], Awaitable[bool]]


def format_sse(event: StreamEvent) -> str:
    """Format one event as an SSE frame: ``data: <json>\\n\\n``."""
    data = json.dumps(event.to_dict(), separators=(",", ":"), ensure_ascii=False)
    return f"data: {data}\n\n"


def timeout_message(timeout_s: float) -> str:
    if timeout_s >= 60 and timeout_s % 60 == 0:
        minutes = int(timeout_s // 60)
        return f"Request timeout after {minutes} minute{'s' if minutes != 1 else ''}"
    return f"Request timeout after {timeout_s:g} seconds"


class SSEStreamer:
    """Writes an event stream to a client as SSE frames.

    The client disconnecting is the cancellation point for the whole
    pipeline: no further frames are written and the upstream event stream
    is closed, which aborts the in-flight provider read.
    """

    def __init__(
        self,
        timeout_s: Optional[float] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        """
        Args:
            timeout_s: Maximum stream duration; None disables the timeout
            logger: Structured logger
        """
        self.timeout_s = timeout_s
        self.logger = logger or StructuredLogger("smartsummary.sse")

    async def frames(
        self,
        events: AsyncIterator[StreamEvent],
        is_disconnected: Optional[DisconnectCheck] = None,
    ) -> AsyncIterator[str]:
        """Yield SSE frames for ``events`` until a terminal condition.

        A raised failure that did not already produce an error frame is
        turned into one before the stream ends.
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout_s if self.timeout_s else None
        error_written = False

        async with aclosing(events) as stream:
            while True:
                try:
                    if deadline is None:
                        event = await stream.__anext__()
                    else:
                        event = await asyncio.wait_for(
                            stream.__anext__(), timeout=max(deadline - loop.time(), 0)
                        )
                except StopAsyncIteration:
                    return
                except asyncio.TimeoutError:
                    self.logger.warning(
                        "stream_timeout",
                        error_code=ErrorCode.STREAM_TIMEOUT.value,
                        timeout_s=self.timeout_s,
                    )
                    if not await self._disconnected(is_disconnected):
                        yield format_sse(ErrorEvent(message=timeout_message(self.timeout_s)))
                    return
                except Exception as e:
                    if not error_written and not await self._disconnected(is_disconnected):
                        message = error_message(e) or UNEXPECTED_ERROR_MESSAGE
                        yield format_sse(ErrorEvent(message=message))
                    return

                if await self._disconnected(is_disconnected):
                    client_disconnects_total.inc()
                    self.logger.info("client_disconnected", dropped_event=event.type)
                    return

                if isinstance(event, ErrorEvent):
                    error_written = True
                yield format_sse(event)

    @staticmethod
    async def _disconnected(is_disconnected: Optional[DisconnectCheck]) -> bool:
        if is_disconnected is None:
            return False
        return await is_disconnected()

    def response(self, events: AsyncIterator[StreamEvent], request: Request) -> StreamingResponse:
        """Wrap ``events`` in a streaming ``text/event-stream`` response."""
        return StreamingResponse(
            self.frames(events, request.is_disconnected),
            media_type="text/event-stream",
            headers=SSE_HEADERS,
        )
