"""
Live statistics endpoints.

Two views over the same aggregation: a plain pull endpoint (dashboard
fallback, polled every couple of seconds) and a Server-Sent Events stream
that pushes a snapshot whenever new votes arrive.
"""

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse

from api.deps import get_stats_service
from schemas.stats import QuestionStats
from services.broadcaster import StatsBroadcaster, get_broadcaster
from services.stats_service import StatsService

router = APIRouter()


@router.get("", response_model=list[QuestionStats])
async def get_stats(
    stats_service: StatsService = Depends(get_stats_service),
) -> list[QuestionStats]:
    """Get current statistics for every question, in display order."""
    return await stats_service.compute_stats()


@router.get(
    "/stream",
    response_class=StreamingResponse,
    responses={200: {"content": {"text/event-stream": {}}}},
)
async def stream_stats(
    request: Request,
    broadcaster: StatsBroadcaster = Depends(get_broadcaster),
) -> StreamingResponse:
    """
    Subscribe to live statistics.

    Sends the current snapshot immediately, then one ``data:`` event with the
    full statistics list each time the vote count increases. The connection
    stays open until the client disconnects.
    """
    subscription = broadcaster.subscribe(is_disconnected=request.is_disconnected)
    return StreamingResponse(
        subscription.events(),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
