"""Smart Summary Core - provider-agnostic streaming, routing and accounting."""

from smartsummary.core.cost_estimator import PriceTable, estimate_prompt_tokens, estimate_tokens
from smartsummary.core.router import LLMRouter
from smartsummary.core.store import InMemoryRequestStore, RedisRequestStore, RequestRecord, RequestStore

__all__ = [
    "InMemoryRequestStore",
    "LLMRouter",
    "PriceTable",
    "RedisRequestStore",
    "RequestRecord",
    "RequestStore",
    "estimate_prompt_tokens",
    "estimate_tokens",
]
