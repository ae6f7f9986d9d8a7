"""Primary/fallback provider routing for summary streams."""
from contextlib import aclosing
from typing import Any, AsyncIterator, Optional, Protocol

from smartsummary.core.errors import ConfigurationError, LLMRateLimitError, error_message
from smartsummary.core.events import ChunkEvent, ErrorEvent, StartEvent, StreamEvent
from smartsummary.core.logging import StructuredLogger
from smartsummary.metrics.prometheus import fallbacks_total

NO_PROVIDER_MESSAGE = (
    "No LLM service is available. "
    "Please configure either OPENROUTER_API_KEY or OPENAI_API_KEY"
)


class SummaryStreamer(Protocol):
    """What the router needs from a provider."""

    name: str
    display_name: str

    def stream_summarize(self, text: str, options: Any = None) -> AsyncIterator[StreamEvent]:
        ...


class LLMRouter:
    """Selects a provider and falls back on failure.

    Policy:
    - Rate-limit failures from the primary are never retried elsewhere;
      the fallback would only burn its own budget on a throttled request.
    - Any other primary failure is retried once, in full, on the fallback,
      provided the primary had not delivered any content yet. A failure
      after a Chunk is intentionally not retried: the client already holds
      partial text, and a second provider would break chunk concatenation
      and the single terminal event.
    - With a single provider its failures propagate unchanged.
    - With none configured every call fails before emitting anything.
    """

    def __init__(
        self,
        primary: Optional[SummaryStreamer] = None,
        fallback: Optional[SummaryStreamer] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        self.primary = primary
        self.fallback = fallback
        self.logger = logger or StructuredLogger("smartsummary.router")

    @property
    def service_name(self) -> str:
        """Display name of the provider tried first."""
        if self.primary:
            return self.primary.display_name
        if self.fallback:
            return self.fallback.display_name
        return "None"

    def log_availability(self) -> None:
        if self.primary:
            self.logger.info("provider_available", provider=self.primary.name, role="primary")
        if self.fallback:
            self.logger.info("provider_available", provider=self.fallback.name, role="fallback")
        if not self.primary and not self.fallback:
            self.logger.warning("no_provider_available", message=NO_PROVIDER_MESSAGE)

    def stream_summarize(self, text: str, options: Any = None) -> AsyncIterator[StreamEvent]:
        """Return the event stream for ``text``.

        Raises:
            ConfigurationError: Immediately, if no provider is configured
        """
        if self.primary and self.fallback:
            return self._stream_with_fallback(text, options)
        if self.primary:
            return self.primary.stream_summarize(text, options)
        if self.fallback:
            self.logger.info("provider_selected", provider=self.fallback.name, reason="primary_not_configured")
            return self.fallback.stream_summarize(text, options)
        raise ConfigurationError(NO_PROVIDER_MESSAGE)

    async def _stream_with_fallback(self, text: str, options: Any) -> AsyncIterator[StreamEvent]:
        primary, fallback = self.primary, self.fallback
        # The primary's Error event is held until we know whether to fall back
        held_error: Optional[ErrorEvent] = None
        content_delivered = False

        try:
            async with aclosing(primary.stream_summarize(text, options)) as events:
                async for event in events:
                    if isinstance(event, ErrorEvent):
                        held_error = event
                        continue
                    if isinstance(event, ChunkEvent):
                        content_delivered = True
                    yield event
        except LLMRateLimitError as e:
            self.logger.warning(
                "rate_limited_no_fallback",
                provider=primary.name,
                retry_after=e.retry_after,
                message=e.message,
            )
            if held_error is not None:
                yield held_error
            raise
        except Exception as e:
            # Deliberately no fallback once content reached the client
            if content_delivered:
                self.logger.error(
                    "provider_failed_mid_stream",
                    provider=primary.name,
                    message=error_message(e),
                )
                if held_error is not None:
                    yield held_error
                raise
            self.logger.warning(
                "provider_failed",
                provider=primary.name,
                fallback=fallback.name,
                message=error_message(e),
            )
            fallbacks_total.labels(
                from_provider=primary.name,
                to_provider=fallback.name,
                reason=getattr(getattr(e, "code", None), "value", "INTERNAL_ERROR"),
            ).inc()
        else:
            # Primary ended without raising; pass its terminal event through
            if held_error is not None:
                yield held_error
            return

        self.logger.info("fallback_started", provider=fallback.name)
        try:
            async with aclosing(fallback.stream_summarize(text, options)) as events:
                async for event in events:
                    # The client already saw the primary's Start
                    if isinstance(event, StartEvent):
                        continue
                    yield event
        except Exception as e:
            self.logger.error(
                "fallback_failed",
                provider=fallback.name,
                message=error_message(e),
            )
            raise
