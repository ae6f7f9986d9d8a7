"""Summary endpoints.

This module provides:
- POST /api/summary - Stream a summary of the request text as SSE
- GET /api/summary/{request_id} - Fetch a stored summary request
"""
from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse

from smartsummary.app.dependencies import (
    get_app_state,
    get_client_origin,
    get_streamer,
    get_summary_service,
)
from smartsummary.app.schemas import SummarizeRequest, SummaryRequestResponse
from smartsummary.app.services import SummaryService
from smartsummary.app.sse import SSEStreamer

router = APIRouter(prefix="/api/summary", tags=["Summary"])


def _check_text_bounds(text: str) -> None:
    """Apply configured length bounds on top of the schema limits."""
    state = get_app_state()
    if not state.config:
        return
    bounds = state.config.summary
    if len(text) < bounds.min_text_length:
        raise HTTPException(
            status_code=422,
            detail=f"Text must be at least {bounds.min_text_length} characters",
        )
    if len(text) > bounds.max_text_length:
        raise HTTPException(
            status_code=422,
            detail=f"Text must be less than {bounds.max_text_length:,} characters",
        )


@router.post("")
async def stream_summarize(
    body: SummarizeRequest,
    http_request: Request,
    service: SummaryService = Depends(get_summary_service),
    streamer: SSEStreamer = Depends(get_streamer),
) -> StreamingResponse:
    """Stream summarize text using Server-Sent Events.

    Each frame is ``data: <json>\\n\\n`` carrying one of
    ``{"type":"start"}``, ``{"type":"chunk","content":...}``,
    ``{"type":"complete","data":{...}}`` or ``{"type":"error","error":...}``.
    """
    _check_text_bounds(body.text)
    events = service.stream_summarize(body.text, get_client_origin(http_request))
    return streamer.response(events, http_request)


@router.get("/{request_id}", response_model=SummaryRequestResponse)
async def get_summary_request(
    request_id: str,
    service: SummaryService = Depends(get_summary_service),
) -> SummaryRequestResponse:
    """Fetch one stored summary request."""
    record = await service.get_summary_request(request_id)
    if record is None:
        raise HTTPException(status_code=404, detail=f"Summary request '{request_id}' not found")
    return SummaryRequestResponse(
        id=record.id,
        text=record.input_text,
        summary=record.summary_text,
        client_ip=record.client_origin,
        tokens_used=record.total_tokens,
        cost=record.cost_usd,
        created_at=record.created_at,
        completed_at=record.completed_at,
        error=record.error_message,
    )
