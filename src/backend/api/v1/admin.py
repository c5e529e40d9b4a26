"""
Administrative endpoints.

Protected by the shared ADMIN_SECRET, sent in the X-Admin-Secret header.
"""

from fastapi import APIRouter, Depends

from api.deps import AdminSecret, get_admin_service
from schemas.stats import ResetResponse
from schemas.vote import ErrorResponse
from services.admin_service import AdminService

router = APIRouter()


@router.post(
    "/reset",
    response_model=ResetResponse,
    responses={401: {"model": ErrorResponse, "description": "Unauthorized"}},
)
async def reset_votes(
    admin_secret: AdminSecret = None,
    admin_service: AdminService = Depends(get_admin_service),
) -> ResetResponse:
    """Delete all votes and participant sessions. Questions are kept."""
    result = await admin_service.reset_all(admin_secret)
    return ResetResponse(
        deleted_votes=result.deleted_votes,
        deleted_sessions=result.deleted_sessions,
    )
