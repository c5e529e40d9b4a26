"""
Aggregated statistics schemas.

Field names are serialized in camelCase for the dashboard.
"""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DistributionBucket(BaseModel):
    """Number of ratings that round to ``value``."""

    value: int
    count: int


class QuestionStats(BaseModel):
    """Derived per-question statistics. Never persisted."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    question_id: str
    question_text: str
    total_votes: int
    average: float
    distribution: list[DistributionBucket]


class ResetResponse(BaseModel):
    """Response after an administrative reset."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    message: str = "All votes reset"
    deleted_votes: int = 0
    deleted_sessions: int = 0
