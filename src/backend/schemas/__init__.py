"""Schemas module initialization."""

from schemas.question import QuestionResponse
from schemas.stats import DistributionBucket, QuestionStats, ResetResponse
from schemas.vote import ErrorResponse, RatingSubmission, VoteResponse, VoteStatus, VoteSubmission

__all__ = [
    "QuestionResponse",
    "RatingSubmission",
    "VoteSubmission",
    "VoteResponse",
    "VoteStatus",
    "ErrorResponse",
    "DistributionBucket",
    "QuestionStats",
    "ResetResponse",
]
