"""Health check and monitoring endpoints.

This module provides:
- GET /health - Basic health check
- GET /metrics - Prometheus metrics
"""
from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from smartsummary.app.dependencies import get_app_state
from smartsummary.app.schemas import HealthResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Basic health check endpoint for load balancers and monitoring."""
    state = get_app_state()
    provider = state.router.service_name if state.router else "None"
    store_ok = state.store is not None and await state.store.ping()
    status = "ok" if provider != "None" and store_ok else "degraded"
    return HealthResponse(status=status, provider=provider, store="ok" if store_ok else "unavailable")


@router.get("/metrics")
async def metrics() -> Response:
    """Prometheus metrics endpoint."""
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
