"""OpenRouter LLM adapter (primary provider)."""
from typing import Dict, Optional

from smartsummary.adapters.llm.base import LLMAdapter
from smartsummary.core.cost_estimator import OPENROUTER_PRICING

OPENROUTER_API_URL = "https://openrouter.ai/api/v1"


class OpenRouterAdapter(LLMAdapter):
    """OpenRouter API adapter."""

    name = "openrouter"
    display_name = "OpenRouter"
    default_base_url = OPENROUTER_API_URL
    builtin_default_model = "openai/gpt-3.5-turbo"
    pricing = OPENROUTER_PRICING

    def __init__(
        self,
        api_key: str,
        app_url: Optional[str] = None,
        app_title: Optional[str] = None,
        **kwargs,
    ):
        """
        Args:
            api_key: OpenRouter API key
            app_url: Sent as HTTP-Referer for OpenRouter app attribution
            app_title: Sent as X-Title for OpenRouter app attribution
            **kwargs: See LLMAdapter
        """
        super().__init__(api_key, **kwargs)
        self.app_url = app_url
        self.app_title = app_title

    def build_request_headers(self) -> Dict[str, str]:
        headers = super().build_request_headers()
        if self.app_url:
            headers["HTTP-Referer"] = self.app_url
        if self.app_title:
            headers["X-Title"] = self.app_title
        return headers

    def get_api_error_message(self, status_code: int) -> str:
        return f"OpenRouter API error: {status_code}"
