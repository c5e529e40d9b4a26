"""
Question-related Pydantic schemas.
"""

from pydantic import BaseModel


class QuestionResponse(BaseModel):
    """A question as shown to participants."""

    id: str
    text: str
    order: int

    model_config = {
        "json_schema_extra": {
            "example": {
                "id": "6f1c3e0a-6a4e-4b55-9d0e-1f8f3c2a9b10",
                "text": "How much did you enjoy the talk?",
                "order": 1,
            }
        }
    }
