"""Service layer for Smart Summary endpoints.

``SummaryService`` wraps the provider router's event stream with request
record persistence. Record writes at stream termination run as background
tasks so they never delay or fail the stream the client sees.
"""
import asyncio
import time
from contextlib import aclosing
from typing import Any, AsyncIterator, Coroutine, Optional, Set

from smartsummary.adapters.llm.base import SummarizeOptions
from smartsummary.core.errors import PersistenceError, error_message
from smartsummary.core.events import CompleteEvent, CompletionResult, ErrorEvent, StreamEvent
from smartsummary.core.logging import StructuredLogger
from smartsummary.core.router import LLMRouter
from smartsummary.core.store import RequestRecord, RequestStore, utcnow
from smartsummary.metrics.prometheus import (
    llm_cost_usd_total,
    persistence_errors_total,
    requests_total,
    stream_latency_ms,
)


class SummaryService:
    """Request lifecycle manager for summary streams."""

    def __init__(
        self,
        store: RequestStore,
        router: LLMRouter,
        logger: Optional[StructuredLogger] = None,
    ):
        """
        Args:
            store: Request record store
            router: Provider router producing the event stream
            logger: Structured logger
        """
        self.store = store
        self.router = router
        self.logger = logger or StructuredLogger("smartsummary.summary")
        self._pending: Set[asyncio.Task] = set()

    async def create_summary_request(
        self,
        text: str,
        client_origin: Optional[str] = None,
    ) -> RequestRecord:
        return await self.store.create(text, client_origin)

    async def update_summary_request(self, record_id: str, result: CompletionResult) -> None:
        await self.store.update(
            record_id,
            summary_text=result.summary_text,
            total_tokens=result.total_tokens,
            cost_usd=result.cost_usd,
            completed_at=utcnow(),
        )

    async def get_summary_request(self, record_id: str) -> Optional[RequestRecord]:
        return await self.store.find_by_id(record_id)

    async def stream_summarize(
        self,
        text: str,
        client_origin: Optional[str] = None,
        options: Optional[SummarizeOptions] = None,
    ) -> AsyncIterator[StreamEvent]:
        """Stream a summary while recording the request lifecycle.

        Every router event is forwarded unchanged. The record is created
        before any provider call and updated exactly once when the stream
        terminates; a client disconnect leaves it created but not completed.

        Raises:
            PersistenceError: If the record cannot be created
        """
        start_time = time.monotonic()

        try:
            record = await self.create_summary_request(text, client_origin)
        except Exception as e:
            message = f"Failed to create summary request: {error_message(e)}"
            persistence_errors_total.labels(operation="create").inc()
            self.logger.error("record_create_failed", message=message)
            yield ErrorEvent(message=message)
            raise PersistenceError(message) from e

        failure_recorded = False
        try:
            async with aclosing(self.router.stream_summarize(text, options)) as events:
                async for event in events:
                    if isinstance(event, CompleteEvent):
                        self._observe_completion(record.id, event.result, start_time)
                    elif isinstance(event, ErrorEvent) and not failure_recorded:
                        failure_recorded = True
                        self._observe_failure(record.id, event.message, start_time)
                    yield event
        except Exception as e:
            if not failure_recorded:
                failure_recorded = True
                self._observe_failure(record.id, e, start_time)
            raise

    def _observe_completion(self, record_id: str, result: CompletionResult, start_time: float) -> None:
        duration_ms = int((time.monotonic() - start_time) * 1000)
        requests_total.labels(outcome="success").inc()
        stream_latency_ms.labels(outcome="success").observe(duration_ms)
        llm_cost_usd_total.labels(model=result.model).inc(result.cost_usd)
        self.logger.log_request(
            request_id=record_id,
            provider=None,
            model=result.model,
            outcome="success",
            latency_ms=duration_ms,
            cost_usd=result.cost_usd,
            total_tokens=result.total_tokens,
        )
        self._spawn(self._persist_completion(record_id, result))

    def _observe_failure(self, record_id: str, error: Any, start_time: float) -> None:
        duration_ms = int((time.monotonic() - start_time) * 1000)
        requests_total.labels(outcome="error").inc()
        stream_latency_ms.labels(outcome="error").observe(duration_ms)
        code = getattr(error, "code", None)
        self.logger.log_request(
            request_id=record_id,
            provider=None,
            model=None,
            outcome="error",
            error_code=code.value if code is not None else None,
            upstream_status=getattr(error, "status_code", None),
            latency_ms=duration_ms,
        )
        self._spawn(self._persist_failure(record_id, error))

    async def _persist_completion(self, record_id: str, result: CompletionResult) -> None:
        try:
            await self.update_summary_request(record_id, result)
        except Exception as e:
            persistence_errors_total.labels(operation="complete").inc()
            self.logger.error(
                "record_update_failed",
                request_id=record_id,
                error_type=type(e).__name__,
                message=error_message(e),
            )

    async def _persist_failure(self, record_id: str, error: Any) -> None:
        message = error_message(error)
        self.logger.error(
            "summary_request_failed",
            request_id=record_id,
            error_type=type(error).__name__ if isinstance(error, BaseException) else "UnknownError",
            message=message,
        )
        try:
            await self.store.update(record_id, error_message=message, completed_at=utcnow())
        except Exception as e:
            persistence_errors_total.labels(operation="error").inc()
            self.logger.error(
                "record_error_update_failed",
                request_id=record_id,
                error_type=type(e).__name__,
                message=error_message(e),
            )

    def _spawn(self, coro: Coroutine[Any, Any, None]) -> None:
        task = asyncio.create_task(coro)
        self._pending.add(task)
        task.add_done_callback(self._on_task_done)

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            self.logger.warning("record_write_cancelled")
            return
        exc = task.exception()
        if exc is not None:
            self.logger.error(
                "record_write_crashed",
                error_type=type(exc).__name__,
                message=error_message(exc),
            )

    @property
    def pending_writes(self) -> int:
        return len(self._pending)

    async def drain(self) -> None:
        """Wait for in-flight record writes (shutdown and tests)."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
