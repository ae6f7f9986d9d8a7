"""Factory for LLM adapters."""
from typing import Optional, Tuple

import httpx

from smartsummary.adapters.llm.base import LLMAdapter
from smartsummary.adapters.llm.openai import OpenAIAdapter
from smartsummary.adapters.llm.openrouter import OpenRouterAdapter
from smartsummary.config.schema import LLMConfig
from smartsummary.core.logging import StructuredLogger


def build_adapters(
    llm_config: LLMConfig,
    client: Optional[httpx.AsyncClient] = None,
) -> Tuple[Optional[LLMAdapter], Optional[LLMAdapter]]:
    """Build (primary, fallback) adapters from config.

    A provider without an API key is not instantiated.
    """
    primary: Optional[LLMAdapter] = None
    fallback: Optional[LLMAdapter] = None

    openrouter = llm_config.openrouter
    if openrouter.enabled:
        primary = OpenRouterAdapter(
            api_key=openrouter.api_key,
            app_url=openrouter.app_url,
            app_title=openrouter.app_title,
            default_model=openrouter.default_model,
            base_url=openrouter.base_url,
            timeout_s=openrouter.timeout_s,
            max_tokens=llm_config.max_tokens,
            temperature=llm_config.temperature,
            client=client,
            logger=StructuredLogger("smartsummary.adapters.openrouter"),
        )

    openai = llm_config.openai
    if openai.enabled:
        fallback = OpenAIAdapter(
            api_key=openai.api_key,
            default_model=openai.default_model,
            base_url=openai.base_url,
            timeout_s=openai.timeout_s,
            max_tokens=llm_config.max_tokens,
            temperature=llm_config.temperature,
            client=client,
            logger=StructuredLogger("smartsummary.adapters.openai"),
        )

    return primary, fallback
