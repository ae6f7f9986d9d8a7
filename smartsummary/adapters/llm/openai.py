"""OpenAI LLM adapter (fallback provider)."""
from smartsummary.adapters.llm.base import LLMAdapter
from smartsummary.core.cost_estimator import OPENAI_PRICING

OPENAI_API_URL = "https://api.openai.com/v1"


class OpenAIAdapter(LLMAdapter):
    """OpenAI API adapter."""

    name = "openai"
    display_name = "OpenAI"
    default_base_url = OPENAI_API_URL
    builtin_default_model = "gpt-3.5-turbo"
    pricing = OPENAI_PRICING

    def get_api_error_message(self, status_code: int) -> str:
        return f"OpenAI API error: {status_code}"
