"""Pydantic schemas for Smart Summary configuration validation."""
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator


class ProviderConfig(BaseModel):
    """Upstream LLM provider configuration."""

    api_key: str = Field(default="", description="API key (can be 'env:VAR_NAME'); empty disables the provider")
    default_model: str = Field(default="", description="Default model name; empty uses the provider built-in default")
    base_url: Optional[str] = Field(default=None, description="Override the provider API base URL")
    timeout_s: float = Field(default=60.0, gt=0, le=600, description="Upstream connect/read timeout in seconds")

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)


class OpenRouterConfig(ProviderConfig):
    """OpenRouter (primary provider) configuration."""

    app_url: str = Field(default="https://smart-summary-app.com", description="Sent as HTTP-Referer attribution header")
    app_title: str = Field(default="Smart Summary App", description="Sent as X-Title attribution header")


class LLMConfig(BaseModel):
    """Summarization defaults and providers."""

    openrouter: OpenRouterConfig = Field(default_factory=OpenRouterConfig, description="Primary provider")
    openai: ProviderConfig = Field(default_factory=ProviderConfig, description="Fallback provider")
    max_tokens: int = Field(default=500, gt=0, description="Default maximum output tokens")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0, description="Default sampling temperature")


class StoreConfig(BaseModel):
    """Request record store configuration."""

    backend: Literal["redis", "memory"] = Field(default="redis", description="Record store backend")
    redis_url: str = Field(default="redis://localhost:6379/0", description="Redis connection URL")
    key_prefix: str = Field(default="smartsummary", description="Prefix for record keys")


class SummaryConfig(BaseModel):
    """Inbound request and stream limits."""

    min_text_length: int = Field(default=10, gt=0, description="Minimum input text length")
    max_text_length: int = Field(default=50000, gt=0, description="Maximum input text length")
    stream_timeout_s: float = Field(default=300.0, gt=0, description="Maximum stream duration before the transport aborts")

    @field_validator("max_text_length")
    @classmethod
    def validate_bounds(cls, v: int, info) -> int:
        """Ensure max >= min."""
        min_length = info.data.get("min_text_length")
        if min_length is not None and v < min_length:
            raise ValueError(f"max_text_length ({v}) must be >= min_text_length ({min_length})")
        return v


class SmartSummaryConfig(BaseModel):
    """Root configuration model."""

    llm: LLMConfig = Field(default_factory=LLMConfig, description="LLM provider configuration")
    store: StoreConfig = Field(default_factory=StoreConfig, description="Record store configuration")
    summary: SummaryConfig = Field(default_factory=SummaryConfig, description="Request limits")
    log_level: str = Field(default="INFO", description="Root log level")
