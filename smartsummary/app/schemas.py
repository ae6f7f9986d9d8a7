"""Request/Response schemas for Smart Summary.

This module provides Pydantic models for:
- Summarize requests (validated input text)
- Stored summary request records
- Health responses
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

MIN_TEXT_LENGTH = 10
MAX_TEXT_LENGTH = 50000


class SummarizeRequest(BaseModel):
    """Request schema for POST /api/summary.

    The response is a Server-Sent Events stream of ``start``, ``chunk``,
    and finally ``complete`` or ``error`` events.
    """

    text: str = Field(
        ...,
        min_length=MIN_TEXT_LENGTH,
        max_length=MAX_TEXT_LENGTH,
        description="Text to summarize (10-50,000 characters)",
    )


class SummaryRequestResponse(BaseModel):
    """Stored lifecycle of one summary request."""

    id: str
    text: str
    summary: Optional[str] = None
    client_ip: Optional[str] = None
    tokens_used: int = 0
    cost: float = 0.0
    created_at: datetime
    completed_at: Optional[datetime] = None
    error: Optional[str] = None


class HealthResponse(BaseModel):
    """Health check response model."""

    status: str
    version: str = "1.0.0"
    provider: str = Field(..., description="Provider tried first: OpenRouter, OpenAI or None")
    store: str = Field(default="ok", description="Record store reachability: ok or unavailable")
