"""
Vote submission endpoints.

One vote-set per participant fingerprint, at most a few participants per
network. The raw client address is hashed before it reaches storage.
"""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query

from api.deps import client_address, get_admission_controller
from schemas.vote import ErrorResponse, VoteResponse, VoteStatus, VoteSubmission
from services.admission_service import AdmissionController

logger = structlog.get_logger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=VoteResponse,
    responses={
        400: {"model": ErrorResponse, "description": "InvalidPayload or InvalidRating"},
        403: {"model": ErrorResponse, "description": "DuplicateVote"},
        429: {"model": ErrorResponse, "description": "RateLimited"},
        500: {"model": ErrorResponse, "description": "StorageFailure"},
    },
)
async def submit_votes(
    submission: VoteSubmission,
    address: str = Depends(client_address),
    admission: AdmissionController = Depends(get_admission_controller),
) -> VoteResponse:
    """
    Submit one rating per question.

    The whole set is stored atomically or not at all. Rejections are
    reported with their taxonomy name in the ``error`` field.
    """
    await admission.submit(
        fingerprint=submission.fingerprint,
        network_address=address,
        ratings=submission.as_pairs(),
    )
    return VoteResponse()


@router.get("/status", response_model=VoteStatus)
async def check_vote_status(
    fingerprint: Optional[str] = Query(None),
    fp: Optional[str] = Query(None, description="Short alias for fingerprint"),
    admission: AdmissionController = Depends(get_admission_controller),
) -> VoteStatus:
    """Check if a fingerprint has already voted. Missing fingerprint means no."""
    has_voted = await admission.has_voted(fingerprint or fp)
    return VoteStatus(has_voted=has_voted)
