"""Provider-agnostic stream events.

Every Provider Client decodes its upstream wire format into this event
sequence: one ``StartEvent``, zero or more ``ChunkEvent`` and exactly one
terminal ``CompleteEvent`` or ``ErrorEvent``.
"""
from dataclasses import dataclass
from typing import Any, Dict, Union


@dataclass(frozen=True)
class CompletionResult:
    """Final summary with usage accounting."""

    summary_text: str
    total_tokens: int
    prompt_tokens: int
    completion_tokens: int
    cost_usd: float
    model: str

    def to_dict(self) -> Dict[str, Any]:
        """Wire shape of the ``complete`` event payload."""
        return {
            "summary": self.summary_text,
            "tokensUsed": self.total_tokens,
            "cost": self.cost_usd,
            "model": self.model,
            "promptTokens": self.prompt_tokens,
            "completionTokens": self.completion_tokens,
        }


@dataclass(frozen=True)
class StartEvent:
    type = "start"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type}


@dataclass(frozen=True)
class ChunkEvent:
    content: str
    type = "chunk"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "content": self.content}


@dataclass(frozen=True)
class CompleteEvent:
    result: CompletionResult
    type = "complete"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "data": self.result.to_dict()}


@dataclass(frozen=True)
class ErrorEvent:
    message: str
    type = "error"

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.type, "error": self.message}


StreamEvent = Union[StartEvent, ChunkEvent, CompleteEvent, ErrorEvent]

