"""Shared dependencies and utilities for the Smart Summary FastAPI application.

This module contains:
- Global state management (config, store, router, services)
- Component initialization from configuration
- Client origin extraction
"""
from dataclasses import dataclass
from typing import Optional

import httpx
from fastapi import HTTPException, Request

from smartsummary.adapters.llm.factory import build_adapters
from smartsummary.app.services import SummaryService
from smartsummary.app.sse import SSEStreamer
from smartsummary.config.schema import SmartSummaryConfig
from smartsummary.core.logging import StructuredLogger
from smartsummary.core.router import LLMRouter
from smartsummary.core.store import InMemoryRequestStore, RedisRequestStore, RequestStore

UNKNOWN_CLIENT = "unknown"


@dataclass
class AppState:
    """Application state container for all shared components."""
    config: Optional[SmartSummaryConfig] = None
    http_client: Optional[httpx.AsyncClient] = None
    store: Optional[RequestStore] = None
    router: Optional[LLMRouter] = None
    summary_service: Optional[SummaryService] = None
    streamer: Optional[SSEStreamer] = None


# Global application state instance
app_state = AppState()


def get_app_state() -> AppState:
    """Get the global application state."""
    return app_state


def build_store(config: SmartSummaryConfig) -> RequestStore:
    """Build the record store configured by ``store.backend``."""
    if config.store.backend == "memory":
        return InMemoryRequestStore()
    return RedisRequestStore(
        config.store.redis_url,
        key_prefix=config.store.key_prefix,
        logger=StructuredLogger("smartsummary.store"),
    )


def init_app_state(
    state: AppState,
    config: SmartSummaryConfig,
    store: Optional[RequestStore] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> AppState:
    """Wire every component from configuration.

    Args:
        state: State container to populate
        config: Validated configuration
        store: Record store override (tests)
        http_client: Shared upstream HTTP client override (tests)
    """
    state.config = config
    state.http_client = http_client or httpx.AsyncClient(
        timeout=httpx.Timeout(
            max(config.llm.openrouter.timeout_s, config.llm.openai.timeout_s),
            connect=10.0,
        ),
        limits=httpx.Limits(max_connections=100, max_keepalive_connections=20),
    )
    state.store = store or build_store(config)

    primary, fallback = build_adapters(config.llm, client=state.http_client)
    state.router = LLMRouter(primary, fallback, logger=StructuredLogger("smartsummary.router"))
    state.summary_service = SummaryService(
        state.store,
        state.router,
        logger=StructuredLogger("smartsummary.summary"),
    )
    state.streamer = SSEStreamer(
        timeout_s=config.summary.stream_timeout_s,
        logger=StructuredLogger("smartsummary.sse"),
    )
    return state


def get_summary_service() -> SummaryService:
    state = get_app_state()
    if state.summary_service is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return state.summary_service


def get_streamer() -> SSEStreamer:
    state = get_app_state()
    if state.streamer is None:
        raise HTTPException(status_code=503, detail="Service not initialized")
    return state.streamer


def extract_client_ip(request: Request) -> str:
    """Extract client IP from request.

    Checks in order:
    1. X-Forwarded-For header (first IP if comma-separated)
    2. X-Real-IP header
    3. Socket peer address
    4. 'unknown' if none available
    """
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first_ip = forwarded_for.split(",")[0].strip()
        if first_ip:
            return first_ip

    real_ip = request.headers.get("x-real-ip")
    if real_ip:
        return real_ip

    if request.client and request.client.host:
        return request.client.host

    return UNKNOWN_CLIENT


def get_client_origin(request: Request) -> Optional[str]:
    """Client IP for the request record; 'unknown' is stored as absent."""
    client_ip = extract_client_ip(request)
    return None if client_ip == UNKNOWN_CLIENT else client_ip
