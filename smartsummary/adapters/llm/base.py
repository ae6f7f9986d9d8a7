"""Base LLM provider adapter.

Each provider is a thin set of hooks (default model, pricing, headers,
error message template) around one shared streaming routine that talks to
an OpenAI-compatible ``/chat/completions`` endpoint.
"""
import json
from abc import ABC, abstractmethod
from contextlib import aclosing
from dataclasses import dataclass
from typing import Any, AsyncIterator, Dict, List, Optional

import httpx

from smartsummary.adapters.llm.stream import SSELineDecoder, decode_line, extract_delta_content
from smartsummary.core.cost_estimator import PriceTable, estimate_prompt_tokens, estimate_tokens
from smartsummary.core.errors import LLMRateLimitError, LLMServiceError
from smartsummary.core.events import (
    ChunkEvent,
    CompleteEvent,
    CompletionResult,
    ErrorEvent,
    StartEvent,
    StreamEvent,
)
from smartsummary.core.logging import StructuredLogger
from smartsummary.metrics.prometheus import decode_errors_total, upstream_errors_total

DEFAULT_MAX_TOKENS = 500
DEFAULT_TEMPERATURE = 0.7

SYSTEM_PROMPT = """You are an expert summarization assistant.
Your job is to read the text provided by the user and produce a clear, accurate, and well-structured summary.
Automatically detect the type of content (e.g., article, meeting notes, email, documentation, academic text, news, story) and adapt the summary style accordingly.

General rules:
- Preserve all key points and important context.
- Do not add information that is not present in the text (no hallucinations).
- Keep the language neutral, objective, and easy to read.
- Summaries should be concise but informative.

When summarizing:
• For emails → capture purpose, key info, required actions, decisions.
• For meeting notes → list decisions, action items, owners, deadlines if present.
• For articles, essays, news or reports → capture main topic, key arguments, conclusions.
• For stories or narratives → describe main plot, characters, conflict, and outcome.
• For technical or instructional content → summarize main concepts, steps, recommendations.

Summary Length:
- Default: 3–7 bullet points OR a short paragraph of 60–120 words.
- If the text is long or complex, expand up to 150–200 words only when necessary.

Formatting:
- Use bullet points when possible unless a short paragraph is more natural.
- If there are action items or decisions, include a section titled "Action Items" or "Key Decisions".
"""

USER_PROMPT_TEMPLATE = (
    "Summarize the following text:\n\n{text}\n\n"
    "Output only the summary. Do not include explanations of how you analyzed the text."
)


@dataclass(frozen=True)
class SummarizeOptions:
    """Per-call overrides; None means provider/config default."""

    model: Optional[str] = None
    max_tokens: Optional[int] = None
    temperature: Optional[float] = None


def _as_int(value: Any) -> int:
    try:
        return int(value or 0)
    except (TypeError, ValueError):
        return 0


def _parse_retry_after(value: Optional[str]) -> Optional[int]:
    if not value:
        return None
    try:
        return int(value.strip())
    except ValueError:
        return None


class LLMAdapter(ABC):
    """Base class for LLM provider adapters."""

    # Provider hooks
    name: str = ""  # Metrics/log label, e.g. "openrouter"
    display_name: str = ""  # Human name used in messages, e.g. "OpenRouter"
    default_base_url: str = ""
    builtin_default_model: str = ""
    pricing: PriceTable
    api_path: str = "/chat/completions"

    def __init__(
        self,
        api_key: str,
        default_model: str = "",
        base_url: Optional[str] = None,
        timeout_s: float = 60.0,
        max_tokens: int = DEFAULT_MAX_TOKENS,
        temperature: float = DEFAULT_TEMPERATURE,
        client: Optional[httpx.AsyncClient] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        """
        Args:
            api_key: Provider API key
            default_model: Configured default model (empty uses built-in)
            base_url: Override provider base URL
            timeout_s: Upstream connect/read timeout in seconds
            max_tokens: Default maximum output tokens
            temperature: Default sampling temperature
            client: Shared httpx client (created lazily if omitted)
            logger: Structured logger
        """
        if not api_key:
            raise ValueError(f"{self.display_name} API key is not configured")
        self.api_key = api_key
        self.configured_default_model = default_model
        self.base_url = (base_url or self.default_base_url).rstrip("/")
        self.timeout_s = timeout_s
        self.max_tokens = max_tokens
        self.temperature = temperature
        self._client = client
        self._owns_client = client is None
        self.logger = logger or StructuredLogger(f"smartsummary.adapters.{self.name}")

    @property
    def request_timeout(self) -> httpx.Timeout:
        """Per-request timeout; applied even on a client shared with other providers."""
        return httpx.Timeout(self.timeout_s, connect=min(self.timeout_s, 10.0))

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self.request_timeout,
                limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
            )
        return self._client

    @property
    def default_model(self) -> str:
        return self.configured_default_model or self.builtin_default_model

    @abstractmethod
    def get_api_error_message(self, status_code: int) -> str:
        """Fallback message when the upstream error body has none."""

    def build_request_headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.api_key}",
        }

    def build_messages(self, text: str) -> List[Dict[str, str]]:
        return [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": USER_PROMPT_TEMPLATE.format(text=text)},
        ]

    def prepare_request(
        self,
        messages: List[Dict[str, str]],
        model: str,
        max_tokens: int,
        temperature: float,
    ) -> Dict[str, Any]:
        """Prepare streaming chat-completion payload."""
        return {
            "model": model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "stream": True,
        }

    def get_cost_usd(self, model: str, prompt_tokens: int, completion_tokens: int) -> float:
        """Calculate cost in USD."""
        return self.pricing.cost_usd(model, prompt_tokens, completion_tokens)

    def map_usage_to_result(
        self,
        summary: str,
        usage: Optional[Dict[str, Any]],
        model: str,
        messages: List[Dict[str, str]],
    ) -> CompletionResult:
        """Build the final result, estimating usage when none was reported.

        Estimation only kicks in when all three counters are missing or zero;
        a partially reported usage is taken as-is.
        """
        usage = usage or {}
        prompt_tokens = _as_int(usage.get("prompt_tokens"))
        completion_tokens = _as_int(usage.get("completion_tokens"))
        total_tokens = _as_int(usage.get("total_tokens"))

        if total_tokens == 0 and prompt_tokens == 0 and completion_tokens == 0 and (messages or summary):
            prompt_tokens = estimate_prompt_tokens(messages)
            completion_tokens = estimate_tokens(summary)
            total_tokens = prompt_tokens + completion_tokens
        elif total_tokens == 0:
            total_tokens = prompt_tokens + completion_tokens

        return CompletionResult(
            summary_text=summary,
            total_tokens=total_tokens,
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            cost_usd=self.get_cost_usd(model, prompt_tokens, completion_tokens),
            model=model,
        )

    async def _raise_for_status(self, response: httpx.Response) -> None:
        """Classify a non-success upstream response and raise."""
        status_code = response.status_code
        body = await response.aread()
        try:
            error_data = json.loads(body) if body else {}
            if not isinstance(error_data, dict):
                error_data = {"message": error_data}
        except ValueError:
            error_data = {"message": body.decode("utf-8", errors="replace")}

        api_error = error_data.get("error")
        api_message = api_error.get("message") if isinstance(api_error, dict) else None

        if status_code == 429:
            raise LLMRateLimitError(
                api_message or "Rate limit exceeded",
                retry_after=_parse_retry_after(response.headers.get("retry-after")),
                api_error=error_data,
            )

        raise LLMServiceError(
            api_message or self.get_api_error_message(status_code),
            status_code=status_code,
            api_error=error_data,
        )

    async def stream_summarize(
        self,
        text: str,
        options: Optional[SummarizeOptions] = None,
    ) -> AsyncIterator[StreamEvent]:
        """Stream a summary of ``text``.

        Yields ``StartEvent`` before any network I/O, then ``ChunkEvent`` per
        delta and a final ``CompleteEvent``. On failure an ``ErrorEvent`` is
        yielded and the same failure is raised as ``LLMServiceError``.
        """
        options = options or SummarizeOptions()
        model = options.model or self.default_model
        max_tokens = options.max_tokens or self.max_tokens
        temperature = options.temperature if options.temperature is not None else self.temperature

        yield StartEvent()

        messages = self.build_messages(text)
        payload = self.prepare_request(messages, model, max_tokens, temperature)
        url = f"{self.base_url}{self.api_path}"

        try:
            async with self.client.stream(
                "POST",
                url,
                json=payload,
                headers=self.build_request_headers(),
                timeout=self.request_timeout,
            ) as response:
                if response.status_code >= 400:
                    await self._raise_for_status(response)

                async with aclosing(self._process_stream(response, model, messages)) as events:
                    async for event in events:
                        yield event
        except LLMServiceError as e:
            error = e
        except Exception as e:
            error = LLMServiceError(f"Failed to stream summarize: {e}")
            error.__cause__ = e
        else:
            return

        upstream_errors_total.labels(
            provider=self.name,
            error_code=error.code.value,
            upstream_status=str(error.status_code or "none"),
        ).inc()
        self.logger.warning(
            "provider_error",
            provider=self.name,
            model=model,
            error_code=error.code.value,
            upstream_status=error.status_code,
            message=error.message,
        )
        yield ErrorEvent(message=error.message)
        raise error

    async def _iter_lines(self, response: httpx.Response) -> AsyncIterator[str]:
        """Complete lines of the upstream body, including an unterminated last one."""
        decoder = SSELineDecoder()
        async for data in response.aiter_bytes():
            for line in decoder.feed(data):
                yield line
        for line in decoder.flush():
            yield line

    async def _process_stream(
        self,
        response: httpx.Response,
        model: str,
        messages: List[Dict[str, str]],
    ) -> AsyncIterator[StreamEvent]:
        """Decode the upstream body into chunk events and one complete event."""
        summary = ""
        usage: Optional[Dict[str, Any]] = None

        async with aclosing(self._iter_lines(response)) as lines:
            async for line in lines:
                decoded = decode_line(line)
                if decoded is None:
                    continue
                if decoded.done:
                    break
                if decoded.malformed:
                    decode_errors_total.labels(provider=self.name).inc()
                    continue

                content = extract_delta_content(decoded.payload)
                if content:
                    summary += content
                    yield ChunkEvent(content=content)
                # Last usage snapshot wins
                if isinstance(decoded.payload.get("usage"), dict):
                    usage = decoded.payload["usage"]

        yield CompleteEvent(result=self.map_usage_to_result(summary, usage, model, messages))

    async def aclose(self) -> None:
        """Close the HTTP client if this adapter created it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None
