"""
Schema converter functions.

Centralized helper functions for converting SQLAlchemy models to Pydantic schemas.
"""

from typing import TYPE_CHECKING

from schemas.question import QuestionResponse

if TYPE_CHECKING:
    from models.question import Question


def question_model_to_schema(question: "Question") -> QuestionResponse:
    """Convert a Question model to its public schema (display_order -> order)."""
    return QuestionResponse(
        id=str(question.id),
        text=question.text,
        order=question.display_order,
    )
