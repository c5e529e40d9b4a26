"""
Vote-related Pydantic schemas.

Shape validation is intentionally loose here: admission rules (question
coverage, rating range) are enforced by the admission controller so every
rejection carries its own taxonomy name.
"""

from typing import Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class RatingSubmission(BaseModel):
    """One rating for one question."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    question_id: str
    rating: float


class VoteSubmission(BaseModel):
    """Schema for submitting a complete vote-set."""

    fingerprint: Optional[str] = None
    ratings: list[RatingSubmission] = Field(
        default_factory=list,
        validation_alias=AliasChoices("ratings", "votes"),
    )

    model_config = {
        "json_schema_extra": {
            "example": {
                "fingerprint": "c0ffee...",
                "ratings": [
                    {"questionId": "q-1", "rating": 8},
                    {"questionId": "q-2", "rating": 4.5},
                    {"questionId": "q-3", "rating": 10},
                ],
            }
        }
    }

    def as_pairs(self) -> list[tuple[str, float]]:
        return [(r.question_id, r.rating) for r in self.ratings]


class VoteResponse(BaseModel):
    """Response after a vote-set was admitted."""

    success: bool = True
    message: str = "Vote recorded successfully"


class VoteStatus(BaseModel):
    """Whether a fingerprint has already voted."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    has_voted: bool


class ErrorResponse(BaseModel):
    """Error body for every rejected request."""

    error: str = Field(..., description="Taxonomy name, e.g. DuplicateVote")
    detail: str = Field(..., description="Human readable message")
