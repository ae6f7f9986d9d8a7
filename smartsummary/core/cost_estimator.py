"""Token and cost estimation for LLM requests.

Used only when the upstream does not report usage. All functions are pure.
"""
import math
from dataclasses import dataclass
from typing import Iterable, List, Mapping, Optional, Tuple

# Formatting overhead added by chat templates
TOKENS_PER_MESSAGE = 4
TOKENS_PER_REQUEST = 2

# Rough heuristic: ~4 characters per token for English text
CHARS_PER_TOKEN = 4


def estimate_tokens(text: Optional[str]) -> int:
    """Approximate token count from text length."""
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def estimate_prompt_tokens(messages: Optional[Iterable[Mapping[str, str]]]) -> int:
    """Approximate prompt tokens for a chat message list.

    Each message costs its content tokens plus a fixed per-message overhead
    for role and formatting; the request adds a fixed structural overhead.
    """
    messages = list(messages or [])
    if not messages:
        return 0

    total = 0
    for message in messages:
        total += estimate_tokens(message.get("content", ""))
        total += TOKENS_PER_MESSAGE
    return total + TOKENS_PER_REQUEST


@dataclass(frozen=True)
class PriceTier:
    """Price per 1K tokens."""

    prompt: float
    completion: float


class PriceTable:
    """Per-model pricing matched by model-name substring.

    Tiers are checked in order, so more specific substrings must come first
    (``gpt-4-turbo`` before ``gpt-4``). Unmatched models use ``default``.
    """

    def __init__(self, tiers: List[Tuple[str, PriceTier]], default: PriceTier):
        self.tiers = list(tiers)
        self.default = default

    def tier_for(self, model: str) -> PriceTier:
        for substring, tier in self.tiers:
            if substring in model:
                return tier
        return self.default

    def cost_usd(self, model: str, prompt_tokens: int, completion_tokens: int) -> float:
        """Calculate cost in USD."""
        tier = self.tier_for(model)
        prompt_cost = (prompt_tokens / 1000.0) * tier.prompt
        completion_cost = (completion_tokens / 1000.0) * tier.completion
        return prompt_cost + completion_cost


# Approximate pricing per 1K tokens
# These are approximate and should be updated periodically
OPENROUTER_PRICING = PriceTable(
    tiers=[
        ("gpt-4", PriceTier(prompt=0.03, completion=0.06)),
        ("mistralai/mistral-nemo", PriceTier(prompt=0.02, completion=0.04)),
    ],
    default=PriceTier(prompt=0.0015, completion=0.002),
)

OPENAI_PRICING = PriceTable(
    tiers=[
        ("gpt-4-turbo", PriceTier(prompt=0.01, completion=0.03)),
        ("gpt-4", PriceTier(prompt=0.03, completion=0.06)),
        ("gpt-3.5-turbo", PriceTier(prompt=0.0005, completion=0.0015)),
    ],
    default=PriceTier(prompt=0.0005, completion=0.0015),
)
