"""
Domain exceptions for vote admission and administration.

Every exception carries the taxonomy name reported to clients (``error``),
the HTTP status code the API layer maps it to, and a human readable detail.
"""

from fastapi import status


class LivePulseError(Exception):
    """Base exception for all rejections surfaced to API callers."""

    error: str = "LivePulseError"
    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail: str = "Unexpected error"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    def to_dict(self) -> dict[str, str]:
        return {"error": self.error, "detail": self.detail}


class VoteRejected(LivePulseError):
    """A vote submission was not admitted. Nothing was written."""

    pass


class InvalidPayload(VoteRejected):
    """Malformed or incomplete vote-set."""

    error = "InvalidPayload"
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid vote data"


class InvalidRating(VoteRejected):
    """A rating lies outside the allowed range."""

    error = "InvalidRating"
    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Rating must be between 0 and 10"


class DuplicateVote(VoteRejected):
    """This fingerprint has already completed voting."""

    error = "DuplicateVote"
    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You have already voted"


class RateLimited(VoteRejected):
    """The network already used up its participant quota."""

    error = "RateLimited"
    status_code = status.HTTP_429_TOO_MANY_REQUESTS
    default_detail = "Too many votes from this network"


class StorageFailure(VoteRejected):
    """The transaction could not be committed. Safe to retry the whole submission."""

    error = "StorageFailure"
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_detail = "Vote could not be stored, please try again"


class Unauthorized(LivePulseError):
    """Admin secret missing or wrong."""

    error = "Unauthorized"
    status_code = status.HTTP_401_UNAUTHORIZED
    default_detail = "Unauthorized"
